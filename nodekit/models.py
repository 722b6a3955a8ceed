from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from enum import Enum

class NodeState(Enum):
    UNPROVISIONED = "unprovisioned"
    PROVISIONING = "provisioning"
    AWAITING_READY = "awaiting_ready"
    READY = "ready"
    TEARING_DOWN = "tearing_down"
    DESTROYED = "destroyed"
    FAILED = "failed"

@dataclass(frozen=True)
class NodeSpec:
    """
    Immutable declaration of a test node within a node set.
    The prefab is opaque here and only passed through to the host.
    """
    name: str                           # Logical name (e.g., "main-test1")
    prefab: Optional[str] = None        # Role/prefab name from the declaration
    options: Dict[str, Any] = None      # Per-node overrides, filtered on resolution

    def __post_init__(self):
        if not self.name:
            raise ValueError("Node name is required.")
        if self.options is None:
            object.__setattr__(self, 'options', {})

@dataclass
class NodeHandle:
    """
    Runtime state of one node, kept in the NodeRegistry under the node name.
    """
    name: str
    state: NodeState = NodeState.UNPROVISIONED
    instance: Any = None                # Whatever create_instance returned
    session: Any = None                 # Remote-shell session after connect
    address: Optional[str] = None
    server_name: Optional[str] = None   # Generated backend name "<node>-<timestamp>"
    extra: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class NodeFailure:
    """A single node's failure during a phase."""
    node: str
    phase: str
    error: BaseException

    def __str__(self):
        return f"{self.node} ({self.phase}): {type(self.error).__name__}: {self.error}"

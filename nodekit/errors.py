"""
errors.py: exceptions raised by nodekit. Backend (openstacksdk) and transport
library errors are not translated, except where noted.
"""
from typing import List, Iterable

from .models import NodeFailure


class NodekitError(Exception):
    """Base class for all nodekit errors"""


class ConfigurationIncomplete(NodekitError):
    """
    ConfigurationIncomplete: a required setting is missing or malformed
    at the point where it is used
    """

    def __init__(self, message: str, keys: Iterable[str] = ()):
        super().__init__(message)
        self.keys = list(keys)


class ResourceNotFound(NodekitError):
    """ResourceNotFound: a flavor, image or network name matched nothing"""

    def __init__(self, kind: str, name):
        super().__init__(f"No {kind} named '{name}' found")
        self.kind = kind
        self.name = name


class ReadinessTimeout(NodekitError):
    """
    ReadinessTimeout: the node did not become ready within its timeout
    """

    def __init__(self, node: str, elapsed: float, timeout: int):
        super().__init__(
            f"Node '{node}' not ready after {elapsed:.1f}s (timeout {timeout}s)"
        )
        self.node = node
        self.elapsed = elapsed
        self.timeout = timeout


class AddressNotFound(NodekitError):
    """AddressNotFound: the instance has no address on the configured network"""

    def __init__(self, node: str, network_name):
        super().__init__(f"Node '{node}' has no address on network '{network_name}'")
        self.node = node
        self.network_name = network_name


class TransportFailure(NodekitError):
    """TransportFailure: the remote-shell session could not be established"""


class NodeNotLaunched(NodekitError):
    """
    NodeNotLaunched: a phase needed the instance of a node that was never
    launched by this registry
    """

    def __init__(self, node: str, phase: str):
        super().__init__(f"Node '{node}' has no instance; {phase} called before launch?")
        self.node = node
        self.phase = phase


class PhaseCancelled(NodekitError):
    """PhaseCancelled: the node set was cancelled while the phase was running"""


class PhaseFailed(NodekitError):
    """
    PhaseFailed: one or more nodes failed during a phase. Every failure of
    the phase is listed, not only the first one.
    """

    def __init__(self, phase: str, failures: List[NodeFailure]):
        lines = "\n".join(f"  {f}" for f in failures)
        super().__init__(f"{phase} failed for {len(failures)} node(s):\n{lines}")
        self.phase = phase
        self.failures = failures

    @property
    def nodes(self) -> List[str]:
        return [f.node for f in self.failures]

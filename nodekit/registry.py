"""
registry.py: shared store of node handles, keyed by node name
"""
import threading
from typing import Dict, Any, List, Optional

from .models import NodeHandle


class NodeRegistry:
    """
    NodeRegistry: keeps one NodeHandle per node name inside a host-owned
    storage mapping (under storage["nodes"]). Share one registry between node
    sets that must see each other's nodes. Safe for concurrent use.
    """

    def __init__(self, storage: Optional[Dict[str, Any]] = None):
        self.storage = storage if storage is not None else {}
        self._lock = threading.Lock()
        with self._lock:
            self.storage.setdefault("nodes", {})

    @property
    def nodes(self) -> Dict[str, NodeHandle]:
        return self.storage["nodes"]

    def handle(self, name: str) -> NodeHandle:
        """Get the handle for a node, creating an empty one if needed"""
        with self._lock:
            handle = self.nodes.get(name)
            if handle is None:
                handle = NodeHandle(name=name)
                self.nodes[name] = handle
            return handle

    def get(self, name: str) -> Optional[NodeHandle]:
        with self._lock:
            return self.nodes.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return list(self.nodes.keys())

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self.nodes

    def __len__(self) -> int:
        with self._lock:
            return len(self.nodes)

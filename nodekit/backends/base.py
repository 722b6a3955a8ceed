from abc import ABC, abstractmethod
from typing import List, Dict, Any

class ComputeBackend(ABC):
    """
    Abstract interface for the compute primitives the node set relies on.
    Concrete implementations handle backend-specific details (OpenStack, ...).
    """

    @abstractmethod
    def create_instance(self, options: Dict[str, Any]) -> Any:
        """
        Submit a create request for one instance.
        options: flavor_ref, image_ref, name, key_name and optionally
        nics=[{"net_id": ...}].
        Returns the backend's instance reference.
        """
        pass

    @abstractmethod
    def flavors(self) -> List[Any]:
        """Return every flavor; each has `id` and `name`."""
        pass

    @abstractmethod
    def images(self) -> List[Any]:
        """Return every image; each has `id` and `name`."""
        pass

    @abstractmethod
    def wait_ready(self, instance: Any, wait: float) -> bool:
        """
        Block at most `wait` seconds for the instance to become ready.
        Returns False if the window elapsed first.
        """
        pass

    @abstractmethod
    def addresses(self, instance: Any) -> Dict[str, List[Dict[str, Any]]]:
        """
        Get the instance addresses keyed by network name.
        Each entry carries the address under 'addr'.
        """
        pass

    @abstractmethod
    def destroy(self, instance: Any) -> None:
        """Request deletion of the instance. Does not wait for completion."""
        pass

class NetworkBackend(ABC):
    """Abstract interface for the network listing used by node lookups."""

    @abstractmethod
    def networks(self) -> List[Any]:
        """Return every network; each has `id` and `name`."""
        pass

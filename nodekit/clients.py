"""
clients.py: lazily built, cached compute and network connections
"""
import threading
from typing import Dict, Any, Callable, Mapping, Optional

from .backends.base import ComputeBackend, NetworkBackend
from .backends.openstack import PROVIDER_TYPE, OpenStackCompute, OpenStackNetwork


def credentials(env_config: Mapping[str, Any]) -> Dict[str, Any]:
    """
    credentials: builds connection credentials from the environment config.
    Missing values are passed as None and left for the backend to reject.
    """
    creds = {
        "provider": PROVIDER_TYPE,
        "username": env_config.get("username"),
        "api_key": env_config.get("api_key"),
        "auth_url": env_config.get("endpoint"),
    }
    for key in ("project_name", "region_name"):
        if env_config.get(key):
            creds[key] = env_config[key]
    return creds


class ClientCache:
    """
    ClientCache: builds each backend connection on first use and returns the
    same object for the lifetime of the cache. Credentials are fixed at
    creation; there is no reconnect.
    """

    def __init__(self, env_config: Mapping[str, Any],
                 compute_factory: Optional[Callable[[Dict[str, Any]], ComputeBackend]] = None,
                 network_factory: Optional[Callable[[Dict[str, Any]], NetworkBackend]] = None):
        self.credentials = credentials(env_config)
        self.compute_factory = compute_factory or OpenStackCompute.from_credentials
        self.network_factory = network_factory or OpenStackNetwork.from_credentials
        self._compute = None
        self._network = None
        self._lock = threading.Lock()

    def compute(self) -> ComputeBackend:
        if self._compute is None:
            with self._lock:
                if self._compute is None:
                    self._compute = self.compute_factory(dict(self.credentials))
        return self._compute

    def network(self) -> NetworkBackend:
        if self._network is None:
            with self._lock:
                if self._network is None:
                    self._network = self.network_factory(dict(self.credentials))
        return self._network

"""
nodeset.py: lifecycle of a named set of OpenStack test nodes

A NodeSet drives each of its nodes through launch, connect and teardown.
Nodes are independent: each phase runs them on a thread pool, waits for all
of them, and raises PhaseFailed listing every node that failed.
"""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, Any, Callable, Iterable, List, Mapping, Optional, Union

from . import config as nodeconfig
from .clients import ClientCache
from .errors import (
    AddressNotFound,
    ConfigurationIncomplete,
    NodeNotLaunched,
    PhaseCancelled,
    PhaseFailed,
    ReadinessTimeout,
)
from .lookup import find_flavor, find_image, find_network, resource_id
from .models import NodeFailure, NodeHandle, NodeSpec, NodeState
from .registry import NodeRegistry
from .remote import close_session, open_session

DEFAULT_POLL_INTERVAL = 5


def launch_timestamp(now: Optional[datetime] = None) -> str:
    """Timestamp suffix for generated server names, millisecond resolution"""
    now = now or datetime.now()
    return now.strftime("%Y%m%d-%H%M%S.") + f"{now.microsecond // 1000:03d}"


class NodeSet:
    """
    NodeSet: launches, connects and tears down the nodes of one set.
    Node handles live in the injected NodeRegistry, so another NodeSet sharing
    the registry can find them.
    """
    PROVIDER_TYPE = "openstack"

    def __init__(self, name: str,
                 nodes: Union[Mapping[str, NodeSpec], Iterable[NodeSpec]],
                 registry: NodeRegistry,
                 environ: Optional[Mapping[str, str]] = None,
                 clients: Optional[ClientCache] = None,
                 session_opener: Callable[..., Any] = open_session,
                 poll_interval: float = DEFAULT_POLL_INTERVAL,
                 max_workers: Optional[int] = None,
                 strict: bool = False,
                 clock: Callable[[], float] = time.monotonic):
        """
        :param name: Name of the node set
        :param nodes: NodeSpecs, as a list or keyed by node name
        :param registry: Shared store of node handles
        :param environ: Environment to read NODEKIT_* settings from
        :param clients: Connection cache, built from the environment if omitted
        :param session_opener: Callable(host, user, key_files, options) returning a session
        :param poll_interval: Seconds per readiness wait slice
        :param max_workers: Threads per phase, defaults to one per node
        :param strict: Validate required settings of every node now
        :param clock: Monotonic clock used for the readiness timeout
        """
        self.name = name
        if isinstance(nodes, Mapping):
            self.nodes = dict(nodes)
        else:
            self.nodes = {node.name: node for node in nodes}
        self.registry = registry
        self.env_conf = nodeconfig.read_env(environ)
        self.clients = clients or ClientCache(self.env_conf)
        self.session_opener = session_opener
        self.poll_interval = poll_interval
        self.max_workers = max_workers
        self.clock = clock
        self.logger = logging.getLogger(f"nodekit.nodeset.{name}")
        self.launched_at = launch_timestamp()
        self._cancelled = threading.Event()

        if strict:
            self.validate()

    def compute(self):
        return self.clients.compute()

    def network(self):
        return self.clients.network()

    def node_conf(self, name: str) -> Dict[str, Any]:
        """Effective configuration of one node"""
        return nodeconfig.node_conf(self.env_conf, self.nodes[name].options)

    def validate(self):
        """
        Check every node's effective configuration for required settings
        :raises ConfigurationIncomplete: listing the missing keys per node
        """
        problems = {}
        for name in self.nodes:
            missing = nodeconfig.missing_keys(self.node_conf(name))
            if missing:
                problems[name] = missing

        if problems:
            details = "; ".join(f"{n}: {', '.join(keys)}" for n, keys in sorted(problems.items()))
            keys = sorted({k for keys in problems.values() for k in keys})
            raise ConfigurationIncomplete(f"Missing or invalid settings ({details})", keys=keys)

    def cancel(self):
        """Stop nodes not yet started and readiness waits in progress"""
        self.logger.warning(f"Cancelling node set {self.name}")
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def handles(self) -> Dict[str, NodeHandle]:
        return {name: self.registry.handle(name) for name in self.nodes}

    def launch(self) -> Dict[str, NodeHandle]:
        """Create one instance per node"""
        self._each_node("launch", self._launch_node)
        return self.handles()

    def connect(self) -> Dict[str, NodeHandle]:
        """Wait for every node, then open a session to it"""
        self._each_node("connect", self._connect_node)
        return self.handles()

    def teardown(self) -> None:
        """
        Request deletion of every node's instance without waiting for it.
        Registry entries are kept, marked DESTROYED.
        """
        self._each_node("teardown", self._teardown_node)

    def _launch_node(self, name: str, handle: NodeHandle, conf: Dict[str, Any]):
        handle.state = NodeState.PROVISIONING
        compute = self.compute()

        flavor = find_flavor(compute, conf.get("flavor"))
        image = find_image(compute, conf.get("image"))
        options = {
            "flavor_ref": resource_id(flavor, "flavor", conf.get("flavor")),
            "image_ref": resource_id(image, "image", conf.get("image")),
            "name": f"{name}-{self.launched_at}",
            "key_name": conf.get("keypair_name"),
        }
        if conf.get("network_name"):
            network = find_network(self.network(), conf["network_name"])
            options["nics"] = [{"net_id": resource_id(network, "network", conf["network_name"])}]

        self.logger.info(f"Launching openstack instance {name}")
        handle.instance = compute.create_instance(options)
        handle.server_name = options["name"]
        close_session(handle.session)
        handle.session = None
        handle.address = None
        handle.state = NodeState.AWAITING_READY

    def _connect_node(self, name: str, handle: NodeHandle, conf: Dict[str, Any]):
        if handle.instance is None:
            raise NodeNotLaunched(name, "connect")
        timeout = nodeconfig.node_timeout(conf)
        key_files = nodeconfig.private_keys(conf)

        handle.state = NodeState.AWAITING_READY
        self._wait_until_ready(name, handle.instance, timeout)

        network_name = conf.get("network_name")
        addresses = self.compute().addresses(handle.instance) or {}
        entries = addresses.get(network_name) or []
        if not entries:
            raise AddressNotFound(name, network_name)
        handle.address = entries[0]["addr"]

        handle.session = self.session_opener(
            handle.address, nodeconfig.ssh_username(conf), key_files, {"paranoid": False}
        )
        handle.state = NodeState.READY
        self.logger.info(f"Connected to {name} at {handle.address}")

    def _wait_until_ready(self, name: str, instance: Any, timeout: int):
        compute = self.compute()
        started = self.clock()
        while True:
            if self.cancelled:
                raise PhaseCancelled(f"Readiness wait for {name} cancelled")
            elapsed = self.clock() - started
            if elapsed >= timeout:
                raise ReadinessTimeout(name, elapsed, timeout)
            # The last slice is cut short so no wait runs past the timeout
            if compute.wait_ready(instance, min(self.poll_interval, timeout - elapsed)):
                return
            self.logger.info(f"Timeout waiting for instance {name}, trying again...")

    def _teardown_node(self, name: str, handle: NodeHandle, conf: Dict[str, Any]):
        if handle.instance is None:
            raise NodeNotLaunched(name, "teardown")
        handle.state = NodeState.TEARING_DOWN
        self.logger.info(f"Destroying server {handle.server_name or name}")
        self.compute().destroy(handle.instance)
        handle.state = NodeState.DESTROYED

    def _run_node(self, phase: str, name: str, func: Callable) -> Optional[NodeFailure]:
        handle = self.registry.handle(name)
        try:
            if self.cancelled:
                raise PhaseCancelled(f"{phase} of {name} cancelled before start")
            func(name, handle, self.node_conf(name))
            return None
        except Exception as e:
            handle.state = NodeState.FAILED
            self.logger.warning(f"{phase} failed for {name}: {e}")
            return NodeFailure(node=name, phase=phase, error=e)

    def _each_node(self, phase: str, func: Callable):
        names = list(self.nodes)
        if not names:
            return
        workers = self.max_workers or len(names)

        with ThreadPoolExecutor(max_workers=workers,
                                thread_name_prefix=f"nodekit-{phase}") as pool:
            futures = [pool.submit(self._run_node, phase, name, func) for name in names]
            results = [future.result() for future in futures]

        failures: List[NodeFailure] = [r for r in results if r is not None]
        if failures:
            raise PhaseFailed(phase, failures)

import threading
from types import SimpleNamespace

import pytest

from nodekit.backends.base import ComputeBackend, NetworkBackend
from nodekit.clients import ClientCache
from nodekit.config import read_env
from nodekit.models import NodeSpec
from nodekit.nodeset import NodeSet
from nodekit.registry import NodeRegistry


ENV = {
    "NODEKIT_NODE_TIMEOUT": "120",
    "NODEKIT_USERNAME": "test-username",
    "NODEKIT_API_KEY": "test-api_key",
    "NODEKIT_IMAGE": "test-image_name",
    "NODEKIT_FLAVOR": "test-flavor_name",
    "NODEKIT_ENDPOINT": "http://token.url/tokens",
    "NODEKIT_KEYPAIR_NAME": "test-keypair_name",
    "NODEKIT_SSH_USERNAME": "test-ssh_username",
    "NODEKIT_NETWORK_NAME": "test-network_name",
    "NODEKIT_PRIVATE_KEY": "/keys/one:/keys/two",
}


class StubCompute(ComputeBackend):
    """Records calls; readiness is scripted per instance and advances a fake clock"""

    def __init__(self, clock=None, flavors=None, images=None):
        self.clock = clock
        self._flavors = flavors if flavors is not None else [
            SimpleNamespace(id="flavor_123", name="test-flavor_name"),
        ]
        self._images = images if images is not None else [
            SimpleNamespace(id="image_123", name="test-image_name"),
        ]
        self.created = []
        self.destroyed = []
        self.wait_calls = []
        self.not_ready_for = 0
        self.fail_create_for = set()
        self.addresses_by_name = {}
        self._lock = threading.Lock()

    def create_instance(self, options):
        node = options["name"].rsplit("-", 2)[0]
        if node in self.fail_create_for:
            raise RuntimeError(f"quota exceeded for {node}")
        instance = {"id": f"machine-{node}", "name": options["name"], "node": node}
        with self._lock:
            self.created.append(options)
        return instance

    def flavors(self):
        return list(self._flavors)

    def images(self):
        return list(self._images)

    def wait_ready(self, instance, wait):
        with self._lock:
            self.wait_calls.append(instance["node"])
            attempts = self.wait_calls.count(instance["node"])
        if attempts <= self.not_ready_for:
            if self.clock is not None:
                self.clock.advance(wait)
            return False
        return True

    def addresses(self, instance):
        default = {"test-network_name": [{"addr": f"10.0.0.{instance['node'][-1]}"}]}
        return self.addresses_by_name.get(instance["node"], default)

    def destroy(self, instance):
        with self._lock:
            self.destroyed.append(instance)


class StubNetwork(NetworkBackend):
    def __init__(self, networks=None):
        self._networks = networks if networks is not None else [
            SimpleNamespace(id="network_123", name="test-network_name"),
        ]

    def networks(self):
        return list(self._networks)


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self._lock = threading.Lock()

    def advance(self, seconds):
        with self._lock:
            self.now += seconds

    def __call__(self):
        return self.now


class SessionRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, host, user, key_files, options):
        self.calls.append((host, user, key_files, options))
        return SimpleNamespace(host=host, user=user)


@pytest.fixture
def env():
    return dict(ENV)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def compute(clock):
    return StubCompute(clock=clock)


@pytest.fixture
def network():
    return StubNetwork()


@pytest.fixture
def registry():
    return NodeRegistry()


@pytest.fixture
def sessions():
    return SessionRecorder()


@pytest.fixture
def specs():
    return [
        NodeSpec(name="main-test1", prefab="centos-64-x64"),
        NodeSpec(name="main-test2", prefab="centos-59-x64"),
    ]


@pytest.fixture
def make_nodeset(env, compute, network, registry, sessions, clock, specs):
    """Build a NodeSet wired to the stub backends"""

    def _make(nodes=None, environ=None, **kwargs):
        environ = env if environ is None else environ
        clients = kwargs.pop("clients", None) or ClientCache(
            read_env(environ),
            compute_factory=lambda creds: compute,
            network_factory=lambda creds: network,
        )
        kwargs.setdefault("registry", registry)
        kwargs.setdefault("session_opener", sessions)
        kwargs.setdefault("clock", clock)
        return NodeSet(
            "set name",
            specs if nodes is None else nodes,
            environ=environ,
            clients=clients,
            **kwargs,
        )

    return _make

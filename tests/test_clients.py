"""Tests for nodekit.clients: lazy, cached backend connections."""

import threading
import time

import pytest

from nodekit.clients import ClientCache, credentials
from nodekit.config import read_env


class CountingFactory:
    """Fails the test if asked for a second connection"""

    def __init__(self, delay=0.0):
        self.calls = []
        self.delay = delay
        self._lock = threading.Lock()

    def __call__(self, creds):
        time.sleep(self.delay)
        with self._lock:
            self.calls.append(creds)
            if len(self.calls) > 1:
                pytest.fail("connection constructed more than once")
        return object()


@pytest.fixture
def env_conf(env):
    return read_env(env)


class TestCredentials:

    def test_exact_credentials(self, env_conf):
        assert credentials(env_conf) == {
            "provider": "openstack",
            "username": "test-username",
            "api_key": "test-api_key",
            "auth_url": "http://token.url/tokens",
        }

    def test_optional_scope(self, env_conf):
        env_conf["project_name"] = "ci"
        assert credentials(env_conf)["project_name"] == "ci"


class TestClientCache:

    def test_compute_is_built_with_credentials(self, env_conf):
        compute = CountingFactory()
        cache = ClientCache(env_conf, compute_factory=compute, network_factory=CountingFactory())
        connection = cache.compute()
        assert compute.calls == [credentials(env_conf)]
        assert connection is not None

    def test_compute_is_cached(self, env_conf):
        compute = CountingFactory()
        cache = ClientCache(env_conf, compute_factory=compute, network_factory=CountingFactory())
        assert cache.compute() is cache.compute()
        assert len(compute.calls) == 1

    def test_network_is_cached(self, env_conf):
        network = CountingFactory()
        cache = ClientCache(env_conf, compute_factory=CountingFactory(), network_factory=network)
        assert cache.network() is cache.network()
        assert len(network.calls) == 1

    def test_compute_and_network_are_separate(self, env_conf):
        cache = ClientCache(env_conf, compute_factory=CountingFactory(),
                            network_factory=CountingFactory())
        assert cache.compute() is not cache.network()

    def test_concurrent_first_use_builds_once(self, env_conf):
        compute = CountingFactory(delay=0.05)
        cache = ClientCache(env_conf, compute_factory=compute, network_factory=CountingFactory())
        results = []
        barrier = threading.Barrier(8)

        def use():
            barrier.wait()
            results.append(cache.compute())

        threads = [threading.Thread(target=use) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(compute.calls) == 1
        assert all(r is results[0] for r in results)

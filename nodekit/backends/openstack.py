import logging
from typing import List, Dict, Any

import openstack
from openstack import exceptions as os_exceptions

from ..errors import ConfigurationIncomplete
from .base import ComputeBackend, NetworkBackend

PROVIDER_TYPE = "openstack"

logger = logging.getLogger("nodekit.backends.openstack")


def connect(credentials: Dict[str, Any]):
    """
    connect: opens an openstacksdk connection from nodekit credentials
    :param credentials: provider, username, api_key, auth_url and optionally
        project_name, region_name
    :return: openstack.connection.Connection
    """
    provider = credentials.get("provider", PROVIDER_TYPE)
    if provider != PROVIDER_TYPE:
        raise ValueError(f"Unsupported provider: {provider}")

    missing = [key for key in ("auth_url", "username", "api_key") if not credentials.get(key)]
    if missing:
        raise ConfigurationIncomplete(
            f"OpenStack credentials incomplete: {', '.join(missing)}", keys=missing
        )

    kwargs = {
        "auth_url": credentials.get("auth_url"),
        "username": credentials.get("username"),
        "password": credentials.get("api_key"),
    }
    for key in ("project_name", "region_name"):
        if credentials.get(key):
            kwargs[key] = credentials[key]

    logger.info(f"Connecting to {kwargs['auth_url']} as {kwargs['username']}")
    # Only nodekit settings count: no OS_* variables, no clouds.yaml
    return openstack.connect(load_envvars=False, load_yaml_config=False, **kwargs)


class OpenStackCompute(ComputeBackend):
    def __init__(self, conn):
        self.conn = conn

    @classmethod
    def from_credentials(cls, credentials: Dict[str, Any]) -> "OpenStackCompute":
        return cls(connect(credentials))

    def create_instance(self, options: Dict[str, Any]) -> Any:
        kwargs = {
            "name": options["name"],
            "flavor_id": options["flavor_ref"],
            "image_id": options["image_ref"],
            "key_name": options.get("key_name"),
        }
        if options.get("nics"):
            kwargs["networks"] = [{"uuid": nic["net_id"]} for nic in options["nics"]]
        return self.conn.compute.create_server(**kwargs)

    def flavors(self) -> List[Any]:
        return list(self.conn.compute.flavors())

    def images(self) -> List[Any]:
        return list(self.conn.image.images())

    def wait_ready(self, instance: Any, wait: float) -> bool:
        # ResourceFailure (server went to ERROR) is not a timeout and propagates
        try:
            self.conn.compute.wait_for_server(
                instance, status="ACTIVE", interval=min(2, wait), wait=wait
            )
            return True
        except os_exceptions.ResourceTimeout:
            return False

    def addresses(self, instance: Any) -> Dict[str, List[Dict[str, Any]]]:
        server = self.conn.compute.get_server(instance)
        return server.addresses or {}

    def destroy(self, instance: Any) -> None:
        self.conn.compute.delete_server(instance)


class OpenStackNetwork(NetworkBackend):
    def __init__(self, conn):
        self.conn = conn

    @classmethod
    def from_credentials(cls, credentials: Dict[str, Any]) -> "OpenStackNetwork":
        return cls(connect(credentials))

    def networks(self) -> List[Any]:
        return list(self.conn.network.networks())

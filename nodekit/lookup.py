"""
lookup.py: resolves flavor, image and network names to backend resources.
Every lookup lists the resources again; nothing is cached.
"""
import logging
from typing import Any, Iterable, Optional

from .backends.base import ComputeBackend, NetworkBackend
from .errors import ResourceNotFound

logger = logging.getLogger("nodekit.lookup")


def find_by_name(resources: Iterable[Any], name) -> Optional[Any]:
    """Return the first resource whose name equals `name`, or None"""
    for resource in resources:
        if getattr(resource, "name", None) == name:
            return resource
    return None


def find_flavor(compute: ComputeBackend, name) -> Optional[Any]:
    logger.info(f"Looking up flavor {name}")
    return find_by_name(compute.flavors(), name)


def find_image(compute: ComputeBackend, name) -> Optional[Any]:
    logger.info(f"Looking up image {name}")
    return find_by_name(compute.images(), name)


def find_network(network: NetworkBackend, name) -> Optional[Any]:
    logger.info(f"Looking up network {name}")
    return find_by_name(network.networks(), name)


def resource_id(resource: Optional[Any], kind: str, name) -> Any:
    """
    resource_id: dereferences a lookup result
    :raises ResourceNotFound: if the lookup found nothing
    """
    if resource is None:
        raise ResourceNotFound(kind, name)
    return resource.id

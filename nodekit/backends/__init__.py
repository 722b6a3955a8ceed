from .base import ComputeBackend, NetworkBackend
from .openstack import OpenStackCompute, OpenStackNetwork

__all__ = ['ComputeBackend', 'NetworkBackend', 'OpenStackCompute', 'OpenStackNetwork']

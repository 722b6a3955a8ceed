"""
nodekit: throwaway OpenStack test nodes
"""
from .models import NodeSpec, NodeHandle, NodeState
from .registry import NodeRegistry
from .nodeset import NodeSet

__all__ = [
    'NodeSpec',
    'NodeHandle',
    'NodeState',
    'NodeRegistry',
    'NodeSet'
]

"""
declaration.py: module for loading node set declarations from YAML

  default_set: main
  sets:
    main:
      nodes:
        main-test1:
          prefab: centos-64-x64
          options:
            flavor: m1.small
"""
from pathlib import Path
from typing import Dict, Tuple, Optional
import yaml

from .models import NodeSpec

DEFAULT_NODESET_FILE = ".nodeset.yml"


def load_nodeset(path: Path, set_name: Optional[str] = None) -> Tuple[str, Dict[str, NodeSpec]]:
    """
    load_nodeset: reads one node set from a declaration file
    :param path: YAML declaration file
    :param set_name: Set to load, defaults to the file's default_set
    :return: (set name, NodeSpecs keyed by node name)
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise RuntimeError(f"Failed to load {path}: {e}") from e

    sets = data.get("sets") or {}
    if not isinstance(sets, dict) or not sets:
        raise RuntimeError(f"{path} declares no node sets")

    set_name = set_name or data.get("default_set")
    if set_name is None:
        if len(sets) != 1:
            raise RuntimeError(f"{path} has several sets and no default_set")
        set_name = next(iter(sets))
    if set_name not in sets:
        raise RuntimeError(f"Node set '{set_name}' not found in {path}")

    nodes = (sets[set_name] or {}).get("nodes") or {}
    if not nodes:
        raise RuntimeError(f"Node set '{set_name}' has no nodes")

    specs = {}
    for node_name, node_data in nodes.items():
        node_data = node_data or {}
        options = node_data.get("options") or {}
        if not isinstance(options, dict):
            raise RuntimeError(f"Options of node '{node_name}' must be a mapping")
        specs[str(node_name)] = NodeSpec(
            name=str(node_name),
            prefab=node_data.get("prefab"),
            options=dict(options),
        )
    return set_name, specs

"""
This module purpose is to handle command line interface
"""

import argparse
import logging
import signal
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

from . import config as nodeconfig
from .declaration import DEFAULT_NODESET_FILE, load_nodeset
from .errors import NodekitError, PhaseFailed
from .nodeset import NodeSet
from .registry import NodeRegistry
from .remote import close_session, run_command
from .utils import info, success, error, warning, heading, node_result, print_table

def main(argv=None):
    """
    main: main loop for the program
    """
    parser = argparse.ArgumentParser(description="nodekit - throwaway OpenStack test nodes")
    parser.add_argument("--nodeset", default=DEFAULT_NODESET_FILE,
                        help=f"Node set declaration file (default: {DEFAULT_NODESET_FILE})")
    parser.add_argument("--set", dest="set_name", help="Node set to use (default: default_set)")
    parser.add_argument("--env-file", default=".env",
                        help="dotenv file with NODEKIT_* settings (default: .env)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # nodekit list
    prepare_cmd_list(subparsers)

    # nodekit config
    prepare_cmd_config(subparsers)

    # nodekit run -- <command>
    prepare_cmd_run(subparsers)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    env_file = Path(args.env_file)
    if env_file.exists():
        # Real environment variables win over the file
        load_dotenv(env_file, override=False)

    try:
        set_name, specs = load_nodeset(Path(args.nodeset), args.set_name)
    except RuntimeError as e:
        error(str(e))
        return 1

    if args.command == "list":
        ok = cmd_list(args, set_name, specs)
    elif args.command == "config":
        ok = cmd_config(args, set_name, specs)
    elif args.command == "run":
        ok = cmd_run(args, set_name, specs)
    else:
        ok = False
    return 0 if ok else 1

def prepare_cmd_list(subparsers):
    """
    prepare_cmd_list: prepares parser for subcommand and args for `list`
    """
    subparsers.add_parser("list", help="List the nodes of the set and their settings")

def cmd_list(args, set_name, specs):
    """
    cmd_list: handles 'list' command
    """
    env_conf = nodeconfig.read_env()
    headers = ["NAME", "PREFAB", "FLAVOR", "IMAGE", "NETWORK", "TIMEOUT"]
    rows = []
    for name, spec in specs.items():
        conf = nodeconfig.node_conf(env_conf, spec.options)
        rows.append([
            name,
            spec.prefab or "-",
            conf.get("flavor") or "-",
            conf.get("image") or "-",
            conf.get("network_name") or "-",
            str(conf.get("node_timeout", "-")),
        ])

    heading(f"Node set '{set_name}'")
    print_table(headers, rows)
    return True

def prepare_cmd_config(subparsers):
    """
    prepare_cmd_config: prepares parser for subcommand and args for `config`
    """
    config_p = subparsers.add_parser("config", help="Show the resolved configuration of each node")
    config_p.add_argument("--check", action="store_true",
                          help="Fail if any node misses a required setting")

def cmd_config(args, set_name, specs):
    """
    cmd_config: handles 'config' command
    """
    env_conf = nodeconfig.read_env()
    resolved = {}
    missing = {}
    for name, spec in specs.items():
        conf = nodeconfig.node_conf(env_conf, spec.options)
        resolved[name] = nodeconfig.masked(conf)
        absent = nodeconfig.missing_keys(conf)
        if absent:
            missing[name] = absent

    print(yaml.safe_dump({set_name: resolved}, default_flow_style=False, indent=2), end="")

    for name, keys in missing.items():
        warning(f"{name} is missing: {', '.join(keys)}")
    if args.check and missing:
        error("Configuration incomplete")
        return False
    return True

def prepare_cmd_run(subparsers):
    """
    prepare_cmd_run: prepares parser for subcommand and args for `run`
    """
    run_p = subparsers.add_parser("run", help="Launch the nodes, run a command on each, tear down")
    run_p.add_argument("--workers", type=int, help="Parallel node operations (default: one per node)")
    run_p.add_argument("--keep", action="store_true", help="Do not tear the nodes down afterwards")
    run_p.add_argument("remote_command", nargs=argparse.REMAINDER,
                       help="Command to run on every node (after --)")

def cmd_run(args, set_name, specs):
    """
    cmd_run: handles 'run' command
    """
    command = list(args.remote_command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        error("No command given. Usage: nodekit run -- <command>")
        return False

    registry = NodeRegistry()
    try:
        nodeset = NodeSet(set_name, specs, registry, max_workers=args.workers, strict=True)
    except NodekitError as e:
        error(str(e))
        return False

    previous = signal.signal(signal.SIGINT, lambda signum, frame: nodeset.cancel())
    ok = False
    try:
        info(f"Launching {len(specs)} node(s) of set '{set_name}'")
        nodeset.launch()
        info("Waiting for nodes to become reachable")
        nodeset.connect()
        # Ctrl-C interrupts remote commands as usual
        signal.signal(signal.SIGINT, previous)
        ok = _run_everywhere(nodeset, " ".join(command))
    except NodekitError as e:
        error(str(e))
    finally:
        signal.signal(signal.SIGINT, previous)
        for handle in nodeset.handles().values():
            close_session(handle.session)
        if args.keep:
            warning("Leaving nodes running (--keep)")
        else:
            ok = _teardown_launched(nodeset) and ok
    return ok

def _run_everywhere(nodeset, command):
    ok = True
    for name, handle in nodeset.handles().items():
        heading(f"{name} ({handle.address}): {command}")
        status, out, err = run_command(handle.session, command)
        if out:
            print(out, end="")
        if err:
            print(err, end="", file=sys.stderr)
        if not node_result(name, status):
            ok = False
    return ok

def _teardown_launched(nodeset):
    """
    Tear down only nodes that got an instance. Uses a second node set over the
    same registry and connections.
    """
    launched = {}
    for name, spec in nodeset.nodes.items():
        handle = nodeset.registry.get(name)
        if handle is not None and handle.instance is not None:
            launched[name] = spec
    if not launched:
        return True

    cleanup = NodeSet(nodeset.name, launched, nodeset.registry, clients=nodeset.clients)
    try:
        cleanup.teardown()
    except PhaseFailed as e:
        error(str(e))
        return False
    success(f"Requested deletion of {len(launched)} node(s)")
    return True

if __name__ == "__main__":
    sys.exit(main())

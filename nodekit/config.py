"""
config.py: module for resolving node configuration from NODEKIT_* environment
variables and per-node options
"""
import os
from typing import Dict, Any, Mapping, Optional, List

from .errors import ConfigurationIncomplete

ENV_PREFIX = "NODEKIT_"

# Settings recognized from the environment, lower-cased without the prefix
CONFIG_KEYS = [
    "node_timeout",
    "username",
    "flavor",
    "image",
    "endpoint",
    "keypair_name",
    "ssh_username",
    "network_name",
    "private_key",
    "api_key",
    "project_name",
    "region_name",
]

# Settings a single node may override in its declaration
ALLOWED_OPTIONS = [
    "node_timeout",
    "flavor",
    "image",
    "keypair_name",
    "network_name",
]

REQUIRED_KEYS = [
    "username",
    "api_key",
    "endpoint",
    "flavor",
    "image",
    "keypair_name",
    "network_name",
    "private_key",
    "node_timeout",
]

DEFAULT_SSH_USERNAME = "root"


def _coerce_timeout(value):
    """Parse a timeout to int when possible; leave anything else untouched"""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return value


def read_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    read_env: collects recognized NODEKIT_* variables into a config mapping.
    Prefixed variables whose key is not recognized are ignored.
    :param environ: Mapping to read from, defaults to os.environ
    :return: Config mapping keyed by lower-cased setting name
    """
    if environ is None:
        environ = os.environ

    env_config = {}
    for env_key, value in environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        config_key = env_key[len(ENV_PREFIX):].lower()
        if config_key in CONFIG_KEYS:
            env_config[config_key] = value

    if "node_timeout" in env_config:
        env_config["node_timeout"] = _coerce_timeout(env_config["node_timeout"])
    return env_config


def node_conf(env_config: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    node_conf: merges allowed per-node options over the environment config.
    Option keys outside ALLOWED_OPTIONS are dropped silently.
    """
    conf = dict(env_config)
    for key, value in (options or {}).items():
        key = str(key).lower()
        if key in ALLOWED_OPTIONS:
            conf[key] = value
    if "node_timeout" in conf:
        conf["node_timeout"] = _coerce_timeout(conf["node_timeout"])
    return conf


def node_timeout(conf: Mapping[str, Any]) -> int:
    """
    node_timeout: returns the readiness timeout in seconds, failing here if
    it is absent or not numeric
    """
    value = conf.get("node_timeout")
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ConfigurationIncomplete(
        f"node_timeout must be an integer number of seconds, got {value!r}",
        keys=["node_timeout"],
    )


def private_keys(conf: Mapping[str, Any]) -> List[str]:
    """Split the colon-separated private_key setting into key file paths"""
    value = conf.get("private_key")
    if not value:
        raise ConfigurationIncomplete("private_key is not set", keys=["private_key"])
    return [os.path.expanduser(p) for p in str(value).split(":") if p]


def ssh_username(conf: Mapping[str, Any]) -> str:
    return conf.get("ssh_username") or DEFAULT_SSH_USERNAME


def missing_keys(conf: Mapping[str, Any]) -> List[str]:
    """
    missing_keys: lists required settings that are absent, empty or (for the
    timeout) not numeric
    """
    missing = [key for key in REQUIRED_KEYS if conf.get(key) in (None, "")]
    timeout = conf.get("node_timeout")
    if timeout not in (None, "") and (not isinstance(timeout, int) or isinstance(timeout, bool)):
        missing.append("node_timeout")
    return missing


def masked(conf: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of conf with the api key hidden, for display"""
    shown = dict(conf)
    if shown.get("api_key"):
        shown["api_key"] = "********"
    return shown

"""
remote.py: remote-shell sessions to booted nodes over SSH (paramiko)
"""
import logging
import socket
from typing import Any, Dict, List, Optional, Tuple

import paramiko

from .errors import TransportFailure

logger = logging.getLogger("nodekit.remote")

DEFAULT_SSH_OPTIONS = {
    "port": 22,
    "timeout": 30,
    "paranoid": False,
}


def open_session(host: str, user: str, key_files: List[str],
                 options: Optional[Dict[str, Any]] = None) -> paramiko.SSHClient:
    """
    open_session: connects to a node, trying each candidate key file
    :param host: Address to connect to
    :param user: Login user
    :param key_files: Private key files, tried in order
    :param options: port, timeout, paranoid (verify host keys when True)
    :return: Connected paramiko.SSHClient
    :raises TransportFailure: if the session cannot be established
    """
    opts = dict(DEFAULT_SSH_OPTIONS)
    opts.update(options or {})

    client = paramiko.SSHClient()
    if opts["paranoid"]:
        client.load_system_host_keys()
        client.set_missing_host_key_policy(paramiko.RejectPolicy())
    else:
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    logger.info(f"Opening SSH session to {user}@{host}")
    try:
        client.connect(
            hostname=host,
            port=opts["port"],
            username=user,
            key_filename=key_files,
            look_for_keys=False,
            allow_agent=False,
            timeout=opts["timeout"],
        )
    except (paramiko.SSHException, socket.error) as e:
        client.close()
        raise TransportFailure(f"SSH to {user}@{host} failed: {e}") from e
    return client


def run_command(session: paramiko.SSHClient, command: str,
                timeout: Optional[float] = None) -> Tuple[int, str, str]:
    """
    run_command: runs a shell command over an open session
    :return: (exit status, stdout, stderr)
    """
    try:
        _, stdout, stderr = session.exec_command(command, timeout=timeout)
        out = stdout.read().decode("utf-8", errors="replace")
        err = stderr.read().decode("utf-8", errors="replace")
        status = stdout.channel.recv_exit_status()
    except (paramiko.SSHException, socket.error) as e:
        raise TransportFailure(f"Command '{command}' failed: {e}") from e
    return status, out, err


def close_session(session: Any) -> None:
    if session is not None:
        session.close()

"""
Multi-hop SSH command execution using paramiko.

The first hop is dialled directly; every later hop is reached through a
``direct-tcpip`` channel opened on the previous hop's transport. Commands run
on the last hop only. Clients are opened per call and closed in reverse order.
"""
import io
import logging
import socket
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import paramiko
from paramiko.ssh_exception import (
    AuthenticationException,
    ChannelException,
    NoValidConnectionsError,
    SSHException,
)

from nodeprobe.errors import ErrorType, TransportError
from nodeprobe.modules.probe.models import HopConfig

logger = logging.getLogger("nodeprobe.ssh")

DEFAULT_TIMEOUT_MS = 120000
KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


@dataclass
class CommandResult:
    """Captured output of one command on the target hop."""
    command: str = field(repr=False)
    output: str = ''
    error: str = ''
    exit_code: int = 0


def map_ssh_error(error: Exception, host: str) -> TransportError:
    """Translate a paramiko/socket failure into a TransportError.

    Args:
        error: The exception raised while connecting or executing
        host: Host the failure relates to

    Returns:
        TransportError: Typed error with a descriptive message
    """
    if isinstance(error, TransportError):
        return error

    if isinstance(error, AuthenticationException):
        return TransportError(
            ErrorType.AUTHENTICATION_FAILED,
            f"Authentication failed for {host}",
            host=host,
        )

    if isinstance(error, (socket.timeout, TimeoutError)):
        return TransportError(
            ErrorType.CONNECTION_TIMEOUT,
            f"Connection timeout while connecting to {host}",
            host=host,
        )

    if isinstance(error, socket.gaierror):
        return TransportError(
            ErrorType.HOST_NOT_FOUND,
            f"Host not found: {host}",
            host=host,
        )

    if isinstance(error, (NoValidConnectionsError, ConnectionRefusedError)):
        return TransportError(
            ErrorType.CONNECTION_REFUSED,
            f"Connection refused to {host}",
            host=host,
        )

    message = str(error)
    if 'auth' in message.lower():
        return TransportError(
            ErrorType.AUTHENTICATION_FAILED,
            f"Authentication failed for {host}",
            host=host,
        )

    return TransportError(
        ErrorType.UNKNOWN_ERROR,
        f"Unknown error while connecting to {host}: {message}",
        host=host,
    )


def load_private_key(material: str) -> Optional[paramiko.PKey]:
    """Parse PEM/OpenSSH key material; returns None for plain passwords."""
    if not material or '-----BEGIN' not in material:
        return None

    for key_class in KEY_CLASSES:
        try:
            return key_class.from_private_key(io.StringIO(material))
        except (SSHException, ValueError):
            continue
    raise TransportError(
        ErrorType.VALIDATION_ERROR,
        "Unsupported private key format",
    )


class HopExecutor:
    """Runs commands on the last host of a hop chain."""

    def __init__(self, connect_timeout: Optional[float] = None):
        """Initialize the executor.

        Args:
            connect_timeout: Per-hop connect timeout in seconds; defaults to the call timeout
        """
        self.connect_timeout = connect_timeout

    def execute(
        self,
        hops: Sequence[HopConfig],
        commands: Sequence[str],
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> List[CommandResult]:
        """Tunnel through the hops and run each command on the final host.

        Args:
            hops: Ordered hop chain; the last element is the target
            commands: Commands to run on the target
            timeout_ms: Timeout for connecting and for each command (0 means 120s)

        Returns:
            list: One CommandResult per command

        Raises:
            TransportError: On validation, connection, tunneling or execution failure
        """
        if not hops:
            raise TransportError(
                ErrorType.VALIDATION_ERROR,
                "At least one hop configuration is required",
            )
        if not commands:
            raise TransportError(
                ErrorType.VALIDATION_ERROR,
                "At least one command is required",
            )

        timeout = (timeout_ms or DEFAULT_TIMEOUT_MS) / 1000.0
        clients: List[paramiko.SSHClient] = []
        try:
            for index, hop in enumerate(hops):
                clients.append(self._connect(hop, clients[-1] if clients else None, timeout))
                logger.debug("Connected to hop %d/%d: %s", index + 1, len(hops), hop.describe())

            target = hops[-1]
            return [self._run(clients[-1], target, command, timeout) for command in commands]
        finally:
            for client in reversed(clients):
                try:
                    client.close()
                except Exception as e:
                    logger.debug("Error closing SSH client: %s", e)

    def execute_on_server(
        self,
        host: str,
        port: int,
        username: str,
        credential: str,
        commands: Sequence[str],
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> List[CommandResult]:
        """Convenience wrapper for a directly reachable server."""
        hop = HopConfig(host=host, port=port, username=username, credential=credential)
        return self.execute([hop], commands, timeout_ms)

    def _connect(
        self,
        hop: HopConfig,
        via: Optional[paramiko.SSHClient],
        timeout: float,
    ) -> paramiko.SSHClient:
        connect_timeout = self.connect_timeout or timeout
        sock = None
        if via is not None:
            try:
                transport = via.get_transport()
                if transport is None or not transport.is_active():
                    raise SSHException("previous hop transport is not active")
                sock = transport.open_channel(
                    "direct-tcpip",
                    (hop.host, hop.port),
                    ("127.0.0.1", 0),
                    timeout=connect_timeout,
                )
            except (SSHException, ChannelException, socket.error) as e:
                raise TransportError(
                    ErrorType.TUNNELING_FAILED,
                    f"Tunneling failed to {hop.host}: {e}",
                    host=hop.host,
                ) from e

        pkey = load_private_key(hop.credential)
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname=hop.host,
                port=hop.port,
                username=hop.username,
                password=None if pkey else hop.credential,
                pkey=pkey,
                sock=sock,
                timeout=connect_timeout,
                banner_timeout=connect_timeout,
                auth_timeout=connect_timeout,
                look_for_keys=False,
                allow_agent=False,
            )
        except (SSHException, socket.error, EOFError) as e:
            client.close()
            raise map_ssh_error(e, hop.host) from e
        return client

    def _run(
        self,
        client: paramiko.SSHClient,
        target: HopConfig,
        command: str,
        timeout: float,
    ) -> CommandResult:
        start_time = time.time()
        try:
            _, stdout, stderr = client.exec_command(command, timeout=timeout)
            output = stdout.read().decode('utf-8', 'replace')
            error = stderr.read().decode('utf-8', 'replace')
            exit_code = stdout.channel.recv_exit_status()
        except (socket.timeout, TimeoutError) as e:
            raise TransportError(
                ErrorType.CONNECTION_TIMEOUT,
                f"Command execution timed out after {timeout:.0f}s on {target.host}",
                host=target.host,
            ) from e
        except (SSHException, socket.error, EOFError) as e:
            raise TransportError(
                ErrorType.COMMAND_EXECUTION_FAILED,
                f"Command execution error on {target.host}: {e}",
                host=target.host,
            ) from e

        logger.debug(
            "[%s] Command finished with exit status %d in %.2fs",
            target.host, exit_code, time.time() - start_time
        )
        return CommandResult(command=command, output=output, error=error, exit_code=exit_code)

"""Remote node status probe.

``probe_node`` ties the pieces together:
build command -> retry through the hop executor -> parse -> report.
The executor and node store are passed in so callers (API, CLI, tests)
decide which implementations to use.
"""
import logging
import time
from typing import Any, Callable, Optional, Sequence

from nodeprobe.errors import NodeProbeError, PersistenceLookupError, RequestValidationError
from nodeprobe.utils import redact_sensitive_data
from .commands import build_status_command, describe_command
from .config import ProbeConfig, get_config
from .models import ProbeRequest, ProbeResult, Role, build_hop_chain
from .parser import parse_outcome
from .reporter import ProbeReporter
from .retry import RetryCoordinator

logger = logging.getLogger("nodeprobe.probe")


def build_probe_request(
    hops: Sequence[Any],
    role: Any,
    node_id: Optional[int] = None,
    node_name: Optional[str] = None,
) -> ProbeRequest:
    """Validate caller input and build a ProbeRequest.

    Raises:
        RequestValidationError: If hops are missing/invalid or the role is unsupported
    """
    chain = build_hop_chain(hops)
    parsed_role = Role.parse(role)
    if node_id is not None:
        try:
            node_id = int(node_id)
        except (TypeError, ValueError):
            raise RequestValidationError(f"Invalid node id: {node_id!r}")
    return ProbeRequest(
        hops=chain,
        role=parsed_role,
        node_id=node_id if node_id and node_id > 0 else None,
        node_name=node_name or None,
    )


def resolve_hostname(request: ProbeRequest, store=None) -> str:
    """Name the node is registered under.

    Uses the node record when a node id was given, then the request's
    display name, then the target host.

    Raises:
        PersistenceLookupError: If the node id cannot be resolved
    """
    if request.node_id:
        if store is None:
            raise PersistenceLookupError(request.node_id, "no node store configured")
        try:
            record = store.get(request.node_id)
        except PersistenceLookupError:
            raise
        except NodeProbeError as e:
            raise PersistenceLookupError(request.node_id, str(e)) from e
        logger.info("Resolved node %d: name=%s, type=%s", record.id, record.server_name, record.type)
        if record.server_name:
            return record.server_name
    return request.node_name or request.target.host


def probe_node(
    request: ProbeRequest,
    executor,
    store=None,
    config: Optional[ProbeConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
    reporter: Optional[ProbeReporter] = None,
) -> ProbeResult:
    """Probe one node for its role's software and return its status.

    Args:
        request: Validated probe request
        executor: Hop executor (``execute(hops, commands, timeout_ms)``)
        store: Node store used for hostname lookup and last-checked writes
        config: Retry policy; defaults to the global probe config
        sleep: Delay function used between early attempts
        reporter: Result assembler; defaults to one bound to ``store``

    Returns:
        ProbeResult: Always populated; all-false when the node could not be reached

    Raises:
        PersistenceLookupError: If ``request.node_id`` cannot be resolved
    """
    config = config or get_config()
    reporter = reporter or ProbeReporter(store)

    logger.info(
        "Probing %s for role %s through %d hop(s)",
        request.target.host, request.role.value, len(request.hops)
    )
    for hop in request.hops:
        logger.debug("Hop %d: %s", hop.order + 1, redact_sensitive_data(hop.to_public_dict()))

    hostname = resolve_hostname(request, store)
    command = build_status_command(request.role, hostname, request.target.credential)
    logger.debug("Status script for %s: %s", hostname, describe_command(command, request.target.credential))

    coordinator = RetryCoordinator.from_config(executor, config, sleep=sleep)
    outcome = coordinator.run(request.hops, command, label=hostname)

    status = parse_outcome(request.role, outcome)
    return reporter.report(request, status, outcome)


def probe_single_host(
    host: str,
    port: int,
    username: str,
    credential: str,
    role: Any,
    executor=None,
    store=None,
    node_id: Optional[int] = None,
    **kwargs: Any,
) -> ProbeResult:
    """Probe a directly reachable host (a one-hop chain)."""
    if executor is None:
        from nodeprobe.modules.ssh import HopExecutor
        executor = HopExecutor()
    request = build_probe_request(
        [{'host': host, 'port': port, 'username': username, 'credential': credential}],
        role,
        node_id=node_id,
    )
    return probe_node(request, executor, store=store, **kwargs)

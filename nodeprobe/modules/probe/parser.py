"""Turn captured status-script output into typed status flags.

Parsing is plain substring containment over a fixed token vocabulary, so
banner text, reordering and unrelated log lines do not matter.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .models import ProbeStatus, Role
from .retry import RetryOutcome

logger = logging.getLogger("nodeprobe.probe.parser")

INSTALLED = 'INSTALLED=true'
RUNNING = 'RUNNING=true'
KUBELET_RUNNING = 'KUBELET_RUNNING=true'
IS_MASTER = 'IS_MASTER=true'
IS_WORKER = 'IS_WORKER=true'
NODE_REGISTERED = 'NODE_REGISTERED=true'
DOCKER_INSTALLED = 'DOCKER_INSTALLED=true'
DOCKER_RUNNING = 'DOCKER_RUNNING=true'


@dataclass(frozen=True)
class RoleRules:
    """Tokens that decide each flag for one role."""
    installed: str
    running: Tuple[str, ...]
    derive_membership: bool = False


ROLE_RULES: Dict[Role, RoleRules] = {
    Role.LOAD_BALANCER: RoleRules(installed=INSTALLED, running=(RUNNING,)),
    # A control-plane node only counts as running once it is registered as one.
    Role.CONTROL_PLANE: RoleRules(
        installed=INSTALLED,
        running=(KUBELET_RUNNING, IS_MASTER, NODE_REGISTERED),
        derive_membership=True,
    ),
    # Workers count as running on kubelet alone; registration is not checked.
    Role.WORKER: RoleRules(installed=INSTALLED, running=(KUBELET_RUNNING,)),
    Role.CONTAINER_RUNTIME: RoleRules(installed=DOCKER_INSTALLED, running=(DOCKER_RUNNING,)),
}


def parse_status(role: Role, output: str) -> ProbeStatus:
    """Derive status flags from output that carried both markers."""
    rules = ROLE_RULES[role]
    status = ProbeStatus(
        installed=rules.installed in output,
        running=all(token in output for token in rules.running),
    )
    if rules.derive_membership:
        status.is_control_plane = IS_MASTER in output
        status.is_worker = IS_WORKER in output

    logger.debug(
        "Parsed %s status: installed=%s, running=%s, control_plane=%s, worker=%s",
        role.value, status.installed, status.running, status.is_control_plane, status.is_worker
    )
    return status


def _container_runtime_fallback(output: str) -> Optional[ProbeStatus]:
    # Docker output sometimes loses the end marker while still reporting both flags.
    if DOCKER_INSTALLED in output and DOCKER_RUNNING in output:
        logger.info("Docker reported installed and running without end marker; accepting")
        return ProbeStatus(installed=True, running=True)
    return None


FALLBACK_HOOKS: Dict[Role, Callable[[str], Optional[ProbeStatus]]] = {
    Role.CONTAINER_RUNTIME: _container_runtime_fallback,
}


def parse_outcome(role: Role, outcome: RetryOutcome) -> ProbeStatus:
    """Status for a finished retry loop, falling back to all-false on failure."""
    if outcome.succeeded:
        return parse_status(role, outcome.output)

    hook = FALLBACK_HOOKS.get(role)
    if hook is not None:
        status = hook(outcome.output or '')
        if status is not None:
            return status
    return ProbeStatus()

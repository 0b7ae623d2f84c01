"""Composite status-check scripts, one per role.

Every script brackets its checks with START_MARKER / END_MARKER so callers can
tell real output apart from login banners or a stream cut off mid-way. Each
check falls back to an explicit ``KEY=false`` or ``KEY=NotFound`` line, so one
failing check never hides the others.
"""
import shlex
from typing import Callable, Dict, List, Optional

from nodeprobe.errors import RequestValidationError
from .models import Role

START_MARKER = '===START==='
END_MARKER = '===END==='

REDACTED = '[REDACTED]'

ACTIVE_RUNNING = "'Active: active (running)'"


def _flag(condition: str, key: str) -> str:
    return f"if {condition}; then echo '{key}=true'; else echo '{key}=false'; fi"


def _sudo(secret: str, command: str) -> str:
    # The target hop's credential is fed to sudo on stdin; -p '' keeps the prompt out of the output.
    return f"echo {shlex.quote(secret)} | sudo -S -p '' {command}"


def _load_balancer_checks(hostname: str, secret: str) -> List[str]:
    return [
        _flag("dpkg -l 2>/dev/null | grep -q haproxy", "INSTALLED"),
        _flag(f"systemctl status haproxy 2>/dev/null | grep -q {ACTIVE_RUNNING}", "RUNNING"),
    ]


def _kubelet_checks(hostname: str) -> List[str]:
    return [
        _flag("command -v kubectl >/dev/null 2>&1 && command -v kubelet >/dev/null 2>&1", "INSTALLED"),
        _flag(f"systemctl status kubelet 2>/dev/null | grep -q {ACTIVE_RUNNING}", "KUBELET_RUNNING"),
        f"echo {shlex.quote('hostname=' + hostname)}",
    ]


def _control_plane_checks(hostname: str, secret: str) -> List[str]:
    nodes = _sudo(secret, "kubectl get nodes --no-headers 2>/dev/null")
    name = shlex.quote(hostname)
    control_plane = shlex.quote(f"{hostname}.*control-plane|{hostname}.*master")
    return _kubelet_checks(hostname) + [
        _flag(f"{nodes} | grep -qE {control_plane}", "IS_MASTER"),
        _flag(f"{nodes} | grep {name} | grep -qvE 'control-plane|master'", "IS_WORKER"),
        _flag(f"{nodes} | grep -q {name}", "NODE_REGISTERED"),
        f"{_sudo(secret, 'kubectl get nodes -o wide 2>/dev/null')} | grep {name} || echo 'NODE_STATUS=NotFound'",
    ]


def _worker_checks(hostname: str, secret: str) -> List[str]:
    return _kubelet_checks(hostname)


DOCKER_DETAILS = (
    ("docker info 2>/dev/null | grep 'Server Version'", "DOCKER_VERSION"),
    ("docker ps --format '{{.Names}}'", "DOCKER_CONTAINERS"),
    ("docker system df", "DOCKER_DISK_USAGE"),
    ("docker network ls --format '{{.Name}}'", "DOCKER_NETWORKS"),
)


def _container_runtime_checks(hostname: str, secret: str) -> List[str]:
    checks = [
        _flag("command -v docker >/dev/null 2>&1", "DOCKER_INSTALLED"),
        _flag(f"systemctl status docker 2>/dev/null | grep -q {ACTIVE_RUNNING}", "DOCKER_RUNNING"),
    ]
    for command, key in DOCKER_DETAILS:
        checks.append(f"{_sudo(secret, command)} || echo '{key}=NotFound'")
    return checks


TEMPLATES: Dict[Role, Callable[[str, str], List[str]]] = {
    Role.LOAD_BALANCER: _load_balancer_checks,
    Role.CONTROL_PLANE: _control_plane_checks,
    Role.WORKER: _worker_checks,
    Role.CONTAINER_RUNTIME: _container_runtime_checks,
}

PRIVILEGED_ROLES = (Role.CONTROL_PLANE, Role.CONTAINER_RUNTIME)


def build_status_command(role: Role, hostname: str, secret: Optional[str] = None) -> str:
    """Build the composite status script for a role.

    Args:
        role: Role to check for
        hostname: Name the node is registered under (used by kubectl lookups)
        secret: Target hop credential, required for privileged roles

    Returns:
        str: A single shell script

    Raises:
        RequestValidationError: If the role is unsupported
    """
    role = Role.parse(role)
    template = TEMPLATES.get(role)
    if template is None:
        raise RequestValidationError(f"Unsupported role: {role!r}")

    # Only privileged templates ever see the credential.
    checks = template(hostname, (secret or '') if role in PRIVILEGED_ROLES else '')
    return '; '.join([f"echo '{START_MARKER}'"] + checks + [f"echo '{END_MARKER}'"])


def describe_command(command: str, secret: Optional[str] = None) -> str:
    """Return a log-safe copy of a command with the credential masked."""
    if not secret:
        return command
    return command.replace(shlex.quote(secret), REDACTED).replace(secret, REDACTED)


def has_markers(output: Optional[str]) -> bool:
    """True when output contains both boundary markers."""
    return bool(output) and START_MARKER in output and END_MARKER in output

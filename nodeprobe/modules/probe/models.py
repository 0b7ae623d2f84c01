"""Data models for remote node status probes."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from nodeprobe.config import Config
from nodeprobe.errors import RequestValidationError


class Role(str, Enum):
    """Cluster software roles a node can be probed for."""
    LOAD_BALANCER = 'ha'
    CONTROL_PLANE = 'master'
    WORKER = 'worker'
    CONTAINER_RUNTIME = 'docker'

    @classmethod
    def parse(cls, value: Any) -> 'Role':
        """Resolve a wire value (case-insensitive) to a Role."""
        if isinstance(value, cls):
            return value
        normalized = str(value or '').strip().lower()
        for role in cls:
            if role.value == normalized:
                return role
        raise RequestValidationError(f"Unsupported role: {value!r}")


@dataclass(frozen=True)
class HopConfig:
    """One SSH hop. The last hop in a chain is the probe target."""
    host: str
    username: str
    credential: str = field(default='', repr=False)
    port: int = 22
    order: int = 0

    def describe(self) -> str:
        return f"{self.username}@{self.host}:{self.port}"

    def to_public_dict(self) -> Dict[str, Any]:
        """Hop details safe to persist or log (no credential)."""
        return {'host': self.host, 'port': self.port, 'username': self.username}


HopChain = Tuple[HopConfig, ...]


def build_hop_chain(hops: Sequence[Any]) -> HopChain:
    """Build an ordered, immutable hop chain from HopConfigs or plain dicts.

    Raises:
        RequestValidationError: If the chain is empty or a hop lacks a host/username
    """
    if not hops:
        raise RequestValidationError("At least one hop is required")

    chain: List[HopConfig] = []
    for index, hop in enumerate(hops):
        if isinstance(hop, HopConfig):
            host, username, credential, port = hop.host, hop.username, hop.credential, hop.port
        else:
            host = hop.get('host')
            username = hop.get('username')
            credential = hop.get('credential') or hop.get('password') or ''
            port = hop.get('port') or 22
        if not host or not username:
            raise RequestValidationError(f"Hop {index + 1} requires host and username")
        try:
            port = int(port)
        except (TypeError, ValueError):
            raise RequestValidationError(f"Hop {index + 1} has an invalid port: {port!r}")
        chain.append(HopConfig(
            host=host,
            username=username,
            credential=credential,
            port=port,
            order=index,
        ))
    return tuple(chain)


@dataclass(frozen=True)
class ProbeRequest:
    """A single probe invocation."""
    hops: HopChain
    role: Role
    node_id: Optional[int] = None
    node_name: Optional[str] = None

    @property
    def target(self) -> HopConfig:
        return self.hops[-1]

    @property
    def bastions(self) -> HopChain:
        return self.hops[:-1]


@dataclass
class ProbeStatus:
    """Parsed status flags; everything defaults to False."""
    installed: bool = False
    running: bool = False
    is_control_plane: bool = False
    is_worker: bool = False


@dataclass
class ProbeResult:
    """Final outcome of a probe, owned by the caller."""
    role: Role
    installed: bool = False
    running: bool = False
    is_control_plane: bool = False
    is_worker: bool = False
    last_checked_at: datetime = field(default_factory=datetime.now)
    raw_output: str = ''
    node_id: Optional[int] = None
    attempts: int = 0
    output_valid: bool = False

    @property
    def last_checked(self) -> str:
        return self.last_checked_at.strftime(Config.TIMESTAMP_FORMAT)

    def to_response(self) -> Dict[str, Any]:
        """Render the external response body."""
        status: Dict[str, Any] = {
            'installed': self.installed,
            'running': self.running,
        }
        if self.role in (Role.CONTROL_PLANE, Role.WORKER):
            status['isControlPlane'] = self.is_control_plane
            status['isWorker'] = self.is_worker
        return {
            'success': True,
            'status': status,
            'lastChecked': self.last_checked,
        }


@dataclass
class NodeRecord:
    """Node metadata held by the node store."""
    id: int
    server_name: str
    type: str
    infra_id: int
    hops: List[Dict[str, Any]] = field(default_factory=list)
    ha: str = 'N'
    join_command: str = ''
    certificate_key: str = ''
    last_checked: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def has_type(self, node_type: str) -> bool:
        """Match exact or comma-composite types such as 'master,ha'."""
        return node_type in [t.strip() for t in self.type.split(',') if t.strip()]

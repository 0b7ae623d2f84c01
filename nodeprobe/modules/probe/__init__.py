"""
Remote node status probe.

Checks whether a node's role software (HAProxy, control-plane or worker
kubelet, Docker) is installed and running, using one composite shell script
run through a chain of SSH hops.
"""

from .models import HopConfig, NodeRecord, ProbeRequest, ProbeResult, ProbeStatus, Role, build_hop_chain
from .commands import START_MARKER, END_MARKER, build_status_command, describe_command, has_markers
from .retry import RetryCoordinator, RetryOutcome, classify_transport_error
from .parser import ROLE_RULES, parse_outcome, parse_status
from .reporter import ProbeReporter
from .config import ProbeConfig, get_config, set_config
from .service import build_probe_request, probe_node, probe_single_host

__all__ = [
    # Models
    'HopConfig',
    'NodeRecord',
    'ProbeRequest',
    'ProbeResult',
    'ProbeStatus',
    'Role',
    'build_hop_chain',

    # Pipeline
    'START_MARKER',
    'END_MARKER',
    'build_status_command',
    'describe_command',
    'has_markers',
    'RetryCoordinator',
    'RetryOutcome',
    'classify_transport_error',
    'ROLE_RULES',
    'parse_outcome',
    'parse_status',
    'ProbeReporter',

    # Configuration
    'ProbeConfig',
    'get_config',
    'set_config',

    # Entry points
    'build_probe_request',
    'probe_node',
    'probe_single_host',
]

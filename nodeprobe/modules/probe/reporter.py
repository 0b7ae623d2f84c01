"""Assemble probe results and record when a node was last checked."""
import logging
from datetime import datetime
from typing import Callable

from .models import ProbeRequest, ProbeResult, ProbeStatus, Role
from .retry import RetryOutcome

logger = logging.getLogger("nodeprobe.probe.reporter")


class ProbeReporter:
    """Builds the ProbeResult and performs best-effort node store writes."""

    def __init__(self, store=None, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.clock = clock

    def report(self, request: ProbeRequest, status: ProbeStatus, outcome: RetryOutcome) -> ProbeResult:
        result = ProbeResult(
            role=request.role,
            installed=status.installed,
            running=status.running,
            is_control_plane=status.is_control_plane,
            is_worker=status.is_worker,
            last_checked_at=self.clock(),
            raw_output=outcome.output,
            node_id=request.node_id,
            attempts=outcome.attempts,
            output_valid=outcome.succeeded,
        )

        if request.node_id and self.store is not None:
            self._record_last_checked(request.node_id, result.last_checked_at)
            if request.role == Role.LOAD_BALANCER and result.installed and result.running:
                self._mark_ha(request.node_id)

        logger.info(
            "Probe finished: node=%s, role=%s, installed=%s, running=%s",
            request.node_name or request.node_id, request.role.value, result.installed, result.running
        )
        return result

    def _record_last_checked(self, node_id: int, checked_at: datetime) -> None:
        try:
            self.store.record_last_checked(node_id, checked_at)
            logger.debug("Recorded last check for node %d at %s", node_id, checked_at.isoformat())
        except Exception as e:
            logger.warning("Failed to record last check for node %d: %s", node_id, e)

    def _mark_ha(self, node_id: int) -> None:
        try:
            self.store.update_ha_status(node_id, 'Y')
            logger.info("Marked node %d as an active HA node", node_id)
        except Exception as e:
            logger.warning("Failed to update HA status for node %d: %s", node_id, e)

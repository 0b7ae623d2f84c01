"""Retry loop around the hop executor for status probes."""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from nodeprobe.errors import TransportError
from nodeprobe.utils import truncate
from .commands import has_markers
from .models import HopConfig

logger = logging.getLogger("nodeprobe.probe.retry")

MAX_ATTEMPTS = 10
TIMEOUT_MS = 20000
RETRY_DELAY = 1.0
BACKOFF_ATTEMPTS = 2


def classify_transport_error(error: Exception) -> str:
    """Bucket a transport error by its description: timeout, connection, authentication or other.

    Only used for diagnostics; the retry loop never branches on it.
    """
    message = str(error).lower()
    if 'timeout' in message or 'timed out' in message:
        return 'timeout'
    if 'connection' in message or 'connect' in message:
        return 'connection'
    if 'authentication' in message or 'auth' in message:
        return 'authentication'
    return 'other'


@dataclass
class RetryOutcome:
    """What the retry loop ended with."""
    output: str = ''
    succeeded: bool = False
    attempts: int = 0
    last_error: Optional[TransportError] = None
    error_kind: Optional[str] = None


class RetryCoordinator:
    """Runs one composite command until its output carries both markers.

    Attempts 1..backoff_attempts wait ``retry_delay`` after any failure.
    After that, a transport error ends the loop at once, while output that
    lacks the markers is retried immediately until ``max_attempts``.
    """

    def __init__(
        self,
        executor,
        max_attempts: int = MAX_ATTEMPTS,
        timeout_ms: int = TIMEOUT_MS,
        retry_delay: float = RETRY_DELAY,
        backoff_attempts: int = BACKOFF_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.executor = executor
        self.max_attempts = max_attempts
        self.timeout_ms = timeout_ms
        self.retry_delay = retry_delay
        self.backoff_attempts = backoff_attempts
        self.sleep = sleep

    @classmethod
    def from_config(cls, executor, config, sleep: Callable[[float], None] = time.sleep) -> 'RetryCoordinator':
        return cls(
            executor,
            max_attempts=config.max_attempts,
            timeout_ms=config.timeout_ms,
            retry_delay=config.retry_delay,
            backoff_attempts=config.backoff_attempts,
            sleep=sleep,
        )

    def _in_backoff_phase(self, attempt: int) -> bool:
        return attempt <= self.backoff_attempts

    def run(self, hops: Sequence[HopConfig], command: str, label: str = '') -> RetryOutcome:
        """Execute ``command`` through ``hops`` under the retry policy.

        Args:
            hops: Hop chain ending at the target
            command: Composite status script
            label: Name used in log lines

        Returns:
            RetryOutcome: Last captured output plus success flag and attempt count
        """
        outcome = RetryOutcome()
        label = label or hops[-1].host

        logger.info("[%s] Running status check (up to %d attempts)", label, self.max_attempts)
        for attempt in range(1, self.max_attempts + 1):
            outcome.attempts = attempt
            start_time = time.time()

            try:
                results = self.executor.execute(hops, [command], self.timeout_ms)
            except TransportError as e:
                elapsed = time.time() - start_time
                outcome.last_error = e
                outcome.error_kind = classify_transport_error(e)
                logger.warning(
                    "[%s] Attempt %d/%d failed (%s, %.2fs): %s",
                    label, attempt, self.max_attempts, outcome.error_kind, elapsed, e
                )
                if self._in_backoff_phase(attempt):
                    logger.info("[%s] Retrying in %.1f seconds...", label, self.retry_delay)
                    self.sleep(self.retry_delay)
                    continue
                logger.warning("[%s] Giving up after transport error on attempt %d", label, attempt)
                break

            elapsed = time.time() - start_time
            if results:
                outcome.output = results[0].output or ''
                if has_markers(outcome.output):
                    outcome.succeeded = True
                    logger.info("[%s] Attempt %d succeeded (%.2fs)", label, attempt, elapsed)
                    break
                logger.warning(
                    "[%s] Attempt %d returned output without markers (%.2fs): %s",
                    label, attempt, elapsed, truncate(outcome.output, 100)
                )
            else:
                logger.warning("[%s] Attempt %d returned no results (%.2fs)", label, attempt, elapsed)

            if self._in_backoff_phase(attempt):
                logger.info("[%s] Retrying in %.1f seconds...", label, self.retry_delay)
                self.sleep(self.retry_delay)

        if not outcome.succeeded:
            logger.warning("[%s] No valid output after %d attempt(s); using defaults", label, outcome.attempts)
        return outcome

"""Background worker that runs due activations.

Polls the outbox every ``poll_interval`` seconds. Each due job calls the
activation callback; the callback is idempotent, so a job that runs twice
(crash between activation and delete) is harmless.

Failure handling:
- attempt fails: logged as ``activation_failed``, retried after
  ``backoff * attempts`` seconds
- last attempt fails: job moved to activation_failures and
  ``activation_abandoned`` logged at error level
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from src.core.context import transaction_scope


if TYPE_CHECKING:
    from src.activation.models import ActivationJob
    from src.activation.outbox import ActivationOutbox


logger = structlog.get_logger(__name__)


ActivateCallback = Callable[[str], Awaitable[bool]]


class ActivationWorker:
    """Polling worker over the activation outbox."""

    def __init__(
        self,
        outbox: ActivationOutbox,
        activate: ActivateCallback,
        poll_interval: float = 1.0,
        max_attempts: int = 5,
        retry_backoff: float = 30.0,
        batch_size: int = 50,
    ) -> None:
        """Initialize activation worker.

        Args:
            outbox: Durable job store
            activate: Coroutine activating one transaction by id
            poll_interval: Seconds between outbox polls
            max_attempts: Attempts before a job is abandoned
            retry_backoff: Base delay in seconds, multiplied by attempt number
            batch_size: Max jobs taken per poll
        """
        self.outbox = outbox
        self.activate = activate
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.retry_backoff = retry_backoff
        self.batch_size = batch_size

        self._running = False
        self._stop_event = asyncio.Event()
        self._worker_task: asyncio.Task | None = None
        self._start_time: float = 0.0
        self._last_run_at: datetime | None = None

        # Counters for monitoring
        self._processed = 0
        self._failed = 0
        self._abandoned = 0

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    async def start(self) -> None:
        """Start the background worker."""
        if self._running:
            logger.warning("activation_worker_already_running")
            return

        self._running = True
        self._stop_event = asyncio.Event()
        self._start_time = time.monotonic()
        self._worker_task = asyncio.create_task(
            self._worker_loop(),
            name="activation_worker",
        )
        logger.info(
            "activation_worker_started",
            poll_interval=self.poll_interval,
            max_attempts=self.max_attempts,
        )

    async def stop(self) -> None:
        """Stop the background worker gracefully.

        Jobs not yet run stay in the outbox for the next start.
        """
        if not self._running:
            return

        self._running = False
        self._stop_event.set()

        if self._worker_task:
            try:
                await asyncio.wait_for(self._worker_task, timeout=5.0)
            except TimeoutError:
                logger.warning("activation_worker_stop_timeout")
                self._worker_task.cancel()
            except asyncio.CancelledError:
                pass

        logger.info(
            "activation_worker_stopped",
            processed=self._processed,
            failed=self._failed,
            abandoned=self._abandoned,
        )

    async def _worker_loop(self) -> None:
        """Poll the outbox until stopped."""
        while self._running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                # Outbox unreachable; try again next poll
                logger.exception("activation_worker_error")

            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.poll_interval,
                )
            except TimeoutError:
                pass

    # ==========================================================================
    # Processing
    # ==========================================================================

    async def run_once(self, now: datetime | None = None) -> int:
        """Run every due job once.

        Returns:
            Number of jobs that completed successfully
        """
        now = now or datetime.now(UTC)
        jobs = self.outbox.due_jobs(now=now, limit=self.batch_size)
        self._last_run_at = now

        succeeded = 0
        for job in jobs:
            if await self._process(job, now):
                succeeded += 1
        return succeeded

    async def _process(self, job: ActivationJob, now: datetime) -> bool:
        with transaction_scope(job.transaction_id):
            try:
                await self.activate(job.transaction_id)
            except Exception as e:
                self._handle_failure(job, e, now)
                return False

            self.outbox.complete(job)
            self._processed += 1
            logger.info("activation_completed", attempts=job.attempts + 1)
            return True

    def _handle_failure(
        self,
        job: ActivationJob,
        error: Exception,
        now: datetime,
    ) -> None:
        self._failed += 1
        attempt = job.attempts + 1
        message = f"{type(error).__name__}: {error}"

        if attempt >= self.max_attempts:
            self.outbox.abandon(job, message)
            self._abandoned += 1
            logger.error(
                "activation_abandoned",
                transaction_id=job.transaction_id,
                user_id=str(job.user_id),
                attempts=attempt,
                error=message,
            )
            return

        retry_at = now + timedelta(seconds=self.retry_backoff * attempt)
        self.outbox.reschedule(job, message, retry_at)
        logger.warning(
            "activation_failed",
            transaction_id=job.transaction_id,
            attempts=attempt,
            retry_at=retry_at.isoformat(),
            error=message,
        )

    # ==========================================================================
    # Status/Monitoring
    # ==========================================================================

    @property
    def is_running(self) -> bool:
        """Check if worker is running."""
        return self._running

    @property
    def uptime_seconds(self) -> float:
        """Get worker uptime in seconds."""
        if not self._running or self._start_time == 0:
            return 0.0
        return time.monotonic() - self._start_time

    def get_stats(self) -> dict:
        """Get worker statistics for monitoring."""
        return {
            "running": self._running,
            "processed": self._processed,
            "failed": self._failed,
            "abandoned": self._abandoned,
            "last_run_at": self._last_run_at.isoformat()
            if self._last_run_at
            else None,
            "uptime_seconds": self.uptime_seconds,
        }

"""Tests for ActivationWorker."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.activation.models import ActivationJob
from src.activation.worker import ActivationWorker


NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def job(transaction_id: str = "T1", attempts: int = 0) -> ActivationJob:
    return ActivationJob(
        transaction_id=transaction_id,
        user_id=uuid4(),
        run_at=NOW,
        attempts=attempts,
    )


@pytest.fixture
def outbox() -> MagicMock:
    mock = MagicMock()
    mock.due_jobs.return_value = []
    return mock


@pytest.fixture
def activate() -> AsyncMock:
    return AsyncMock(return_value=True)


@pytest.fixture
def worker(outbox, activate) -> ActivationWorker:
    return ActivationWorker(
        outbox=outbox,
        activate=activate,
        poll_interval=0.01,
        max_attempts=3,
        retry_backoff=30.0,
        batch_size=10,
    )


class TestRunOnce:
    """A single poll of the outbox."""

    async def test_runs_due_jobs(self, worker, outbox, activate) -> None:
        jobs = [job("T1"), job("T2")]
        outbox.due_jobs.return_value = jobs

        assert await worker.run_once(now=NOW) == 2

        outbox.due_jobs.assert_called_once_with(now=NOW, limit=10)
        assert [c.args[0] for c in activate.await_args_list] == ["T1", "T2"]
        assert [c.args[0] for c in outbox.complete.call_args_list] == jobs
        assert worker.get_stats()["processed"] == 2

    async def test_already_activated_counts_as_done(
        self, worker, outbox, activate
    ) -> None:
        activate.return_value = False
        outbox.due_jobs.return_value = [job()]

        assert await worker.run_once(now=NOW) == 1
        outbox.complete.assert_called_once()

    async def test_failure_rescheduled_with_backoff(
        self, worker, outbox, activate
    ) -> None:
        failing = job(attempts=1)
        outbox.due_jobs.return_value = [failing]
        activate.side_effect = RuntimeError("store timeout")

        assert await worker.run_once(now=NOW) == 0

        outbox.reschedule.assert_called_once_with(
            failing, "RuntimeError: store timeout", NOW + timedelta(seconds=60)
        )
        outbox.complete.assert_not_called()
        outbox.abandon.assert_not_called()
        assert worker.get_stats()["failed"] == 1

    async def test_last_attempt_abandons(self, worker, outbox, activate) -> None:
        failing = job(attempts=2)
        outbox.due_jobs.return_value = [failing]
        activate.side_effect = RuntimeError("gone")

        await worker.run_once(now=NOW)

        outbox.abandon.assert_called_once_with(failing, "RuntimeError: gone")
        outbox.reschedule.assert_not_called()
        stats = worker.get_stats()
        assert stats["abandoned"] == 1
        assert stats["last_run_at"] == NOW.isoformat()

    async def test_one_failure_does_not_block_others(
        self, worker, outbox, activate
    ) -> None:
        outbox.due_jobs.return_value = [job("BAD"), job("GOOD")]
        activate.side_effect = [RuntimeError("x"), True]

        assert await worker.run_once(now=NOW) == 1
        assert outbox.complete.call_args.args[0].transaction_id == "GOOD"


class TestLifecycle:
    """start/stop of the polling loop."""

    async def test_start_and_stop(self, worker, outbox) -> None:
        await worker.start()
        assert worker.is_running is True

        await asyncio.sleep(0.05)
        await worker.stop()

        assert worker.is_running is False
        assert outbox.due_jobs.call_count >= 1
        assert worker.get_stats()["uptime_seconds"] == 0.0

    async def test_loop_survives_outbox_errors(self, worker, outbox) -> None:
        outbox.due_jobs.side_effect = RuntimeError("unreachable")

        await worker.start()
        await asyncio.sleep(0.05)
        await worker.stop()

        assert outbox.due_jobs.call_count >= 2

    async def test_double_start_is_noop(self, worker) -> None:
        await worker.start()
        task = worker._worker_task
        await worker.start()
        assert worker._worker_task is task
        await worker.stop()

    async def test_stop_when_not_running(self, worker) -> None:
        await worker.stop()
        assert worker.is_running is False

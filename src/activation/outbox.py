# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Durable store of scheduled activations."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from src.activation.models import DEFAULT_SHARD, ActivationJob
from src.core.logging import get_logger


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class ActivationOutbox:
    """Cassandra-backed queue of activation jobs.

    Moving a job to a new ``run_at`` is a delete plus insert, since
    ``run_at`` is part of the clustering key.
    """

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_job = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.activation_outbox
            (shard, run_at, transaction_id, user_id, attempts, last_error,
             created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_due_jobs = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.activation_outbox
            WHERE shard = ? AND run_at <= ?
            LIMIT ?
        """)
        self._get_all_jobs = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.activation_outbox
            WHERE shard = ?
        """)
        self._delete_job = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.activation_outbox
            WHERE shard = ? AND run_at = ? AND transaction_id = ?
        """)
        self._insert_failure = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.activation_failures
            (transaction_id, user_id, attempts, last_error, failed_at)
            VALUES (?, ?, ?, ?, ?)
        """)

    def enqueue(
        self,
        transaction_id: str,
        user_id: UUID,
        run_at: datetime,
    ) -> ActivationJob:
        """Schedule activation of a transaction at ``run_at``."""
        job = ActivationJob(
            transaction_id=transaction_id,
            user_id=user_id,
            run_at=run_at,
        )
        self._save(job)
        logger.info(
            "activation_scheduled",
            transaction_id=transaction_id,
            run_at=run_at.isoformat(),
        )
        return job

    def due_jobs(
        self,
        now: datetime | None = None,
        limit: int = 50,
    ) -> list[ActivationJob]:
        """Jobs whose run_at has passed, oldest first."""
        now = now or datetime.now(UTC)
        rows = self.session.execute(self._get_due_jobs, [DEFAULT_SHARD, now, limit])
        return [ActivationJob.from_row(row) for row in rows]

    def complete(self, job: ActivationJob) -> None:
        """Remove a job that ran successfully."""
        self._delete(job)

    def reschedule(
        self,
        job: ActivationJob,
        error: str,
        run_at: datetime,
    ) -> ActivationJob:
        """Record a failed attempt and move the job to ``run_at``."""
        retry = ActivationJob(
            transaction_id=job.transaction_id,
            user_id=job.user_id,
            run_at=run_at,
            attempts=job.attempts + 1,
            last_error=error,
            shard=job.shard,
            created_at=job.created_at,
        )
        self._save(retry)
        self._delete(job)
        return retry

    def abandon(self, job: ActivationJob, error: str) -> None:
        """Move a job that exhausted its attempts to activation_failures."""
        self.session.execute(
            self._insert_failure,
            [
                job.transaction_id,
                job.user_id,
                job.attempts + 1,
                error,
                datetime.now(UTC),
            ],
        )
        self._delete(job)

    def remove(self, transaction_id: str) -> int:
        """Drop every job of a transaction (manual verification).

        Returns:
            Number of jobs removed
        """
        rows = self.session.execute(self._get_all_jobs, [DEFAULT_SHARD])
        jobs = [
            ActivationJob.from_row(row)
            for row in rows
            if row.transaction_id == transaction_id
        ]
        for job in jobs:
            self._delete(job)
        return len(jobs)

    def _save(self, job: ActivationJob) -> None:
        self.session.execute(
            self._insert_job,
            [
                job.shard,
                job.run_at,
                job.transaction_id,
                job.user_id,
                job.attempts,
                job.last_error,
                job.created_at,
            ],
        )

    def _delete(self, job: ActivationJob) -> None:
        self.session.execute(
            self._delete_job,
            [job.shard, job.run_at, job.transaction_id],
        )

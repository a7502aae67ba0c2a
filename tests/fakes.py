"""Fakes for the Cassandra driver used across service tests.

Each ``*Table`` class is a statement handler for ``make_session``: it keeps
rows in memory and answers the CQL its service prepares. ``StoreFake``
routes statements to all of them, so several services can share one
store the way they share a keyspace.
"""

from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock


KEYSPACE = "test_ks"


class FakeResult(list):
    """Minimal stand-in for a cassandra ResultSet."""

    def __init__(self, rows: list[Any] | None = None, was_applied: bool = True):
        super().__init__(rows or [])
        self.was_applied = was_applied

    def one(self) -> Any:
        return self[0] if self else None


def row(**fields: Any) -> SimpleNamespace:
    """Build a row object with attribute access."""
    return SimpleNamespace(**fields)


def executed(session: MagicMock, fragment: str) -> list[list]:
    """Parameters of every execute call whose statement contains ``fragment``."""
    return [
        call.args[1] if len(call.args) > 1 else []
        for call in session.execute.call_args_list
        if fragment in call.args[0]
    ]


def course_row(course_id: str = "practical-ibarot", **overrides):
    fields = {
        "course_id": course_id,
        "title": "প্রাকটিকাল ইবারত শিক্ষা",
        "description": None,
        "price": 3000,
        "discounted_price": 1500,
        "instructor": "মাওলানা মুনতাহা আহমদ",
        "duration": "৮ ঘন্টা",
        "lessons": 10,
        "thumbnail": None,
        "is_active": True,
        "created_at": datetime(2026, 1, 1),
        "updated_at": None,
    }
    fields.update(overrides)
    return row(**fields)


# ==============================================================================
# Tables
# ==============================================================================


class UserTable:
    """``users`` keyed by id, looked up by id or email."""

    COLUMNS = (
        "id", "email", "phone", "name", "password_hash", "role", "is_guest",
        "is_active", "created_at", "updated_at",
    )

    def __init__(self) -> None:
        self.rows: dict[Any, Any] = {}

    def __call__(self, cql: str, params: list) -> FakeResult:
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.users WHERE email"):
            return FakeResult([u for u in self.rows.values() if u.email == params[0]])
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.users WHERE id"):
            found = self.rows.get(params[0])
            return FakeResult([found] if found else [])
        if cql.startswith(f"INSERT INTO {KEYSPACE}.users"):
            user = row(**dict(zip(self.COLUMNS, params, strict=True)))
            self.rows[user.id] = user
        return FakeResult()


class CatalogStore:
    """Courses, counters, videos and notes keyed by course id."""

    def __init__(self) -> None:
        self.courses: dict[str, Any] = {}
        self.stats: dict[str, Any] = {}
        self.videos: list = []
        self.notes: list = []

    def add_course(self, course_id: str = "practical-ibarot", **overrides) -> None:
        self.courses[course_id] = course_row(course_id, **overrides)

    def add_video(self, course_id: str, position: int, title: str) -> None:
        self.videos.append(
            row(
                course_id=course_id,
                video_id=f"v{position}",
                position=position,
                title=title,
                description=None,
                video_url=f"https://cdn.example.com/{course_id}/{position}.mp4",
                duration_seconds=600,
                is_preview=position == 1,
                created_at=datetime.now(UTC),
            )
        )

    def add_note(self, course_id: str, position: int, title: str) -> None:
        self.notes.append(
            row(
                course_id=course_id,
                note_id=f"n{position}",
                position=position,
                title=title,
                content="...",
                file_url=None,
                created_at=datetime.now(UTC),
            )
        )

    def __call__(self, cql: str, params: list) -> FakeResult:
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.courses WHERE"):
            found = self.courses.get(params[0])
            return FakeResult([found] if found else [])
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.courses LIMIT"):
            return FakeResult(list(self.courses.values())[: params[0]])
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.course_stats"):
            found = self.stats.get(params[0])
            return FakeResult([found] if found else [])
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.course_videos"):
            return FakeResult([v for v in self.videos if v.course_id == params[0]])
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.course_notes"):
            return FakeResult([n for n in self.notes if n.course_id == params[0]])
        if cql.startswith(
            f"UPDATE {KEYSPACE}.course_stats SET total_students = total_students + 1"
        ):
            self._add(params[0], total_students=1)
        elif cql.startswith(f"UPDATE {KEYSPACE}.course_stats"):
            students, videos, hours, notes, course_id = params
            self._add(
                course_id,
                total_students=students,
                total_videos=videos,
                total_hours=hours,
                total_notes=notes,
            )
        return FakeResult()

    def _add(self, course_id: str, **deltas: int) -> None:
        current = self.stats.setdefault(
            course_id,
            row(total_students=0, total_videos=0, total_hours=0, total_notes=0),
        )
        for name, delta in deltas.items():
            setattr(current, name, getattr(current, name) + delta)


class TransactionTable:
    """``transactions`` keyed by transaction id."""

    COLUMNS = (
        "transaction_id", "user_id", "course_id", "amount", "payment_method",
        "status", "payment_details", "created_at", "updated_at",
    )

    def __init__(self) -> None:
        self.rows: dict[str, Any] = {}
        self.lose_insert_race = False

    def __call__(self, cql: str, params: list) -> FakeResult:
        if cql.startswith(f"INSERT INTO {KEYSPACE}.transactions"):
            if self.lose_insert_race or params[0] in self.rows:
                return FakeResult(was_applied=False)
            self.rows[params[0]] = row(**dict(zip(self.COLUMNS, params, strict=True)))
            return FakeResult()
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.transactions WHERE"):
            found = self.rows.get(params[0])
            return FakeResult([found] if found else [])
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.transactions"):
            return FakeResult(list(self.rows.values()))
        if cql.startswith(f"UPDATE {KEYSPACE}.transactions"):
            self.rows[params[2]].status = params[0]
            self.rows[params[2]].updated_at = params[1]
        return FakeResult()


class LedgerTable:
    """``course_access`` rows, with the conditional activation update."""

    COLUMNS = (
        "user_id", "course_id", "transaction_id", "purchase_date", "status",
        "access_expiry", "updated_at",
    )

    def __init__(self, rows: list | None = None) -> None:
        self.rows: list = rows if rows is not None else []

    def __call__(self, cql: str, params: list) -> FakeResult:
        if cql.startswith(f"SELECT * FROM {KEYSPACE}.course_access"):
            keys = ("user_id", "course_id", "transaction_id")
            found = [
                r for r in self.rows
                if all(getattr(r, k) == v for k, v in zip(keys, params, strict=False))
            ]
            return FakeResult(found)
        if cql.startswith(f"INSERT INTO {KEYSPACE}.course_access"):
            self.rows.append(row(**dict(zip(self.COLUMNS, params, strict=True))))
        elif cql.startswith(f"UPDATE {KEYSPACE}.course_access"):
            return self._conditional_update(params)
        return FakeResult()

    def _conditional_update(self, params: list) -> FakeResult:
        """``UPDATE ... IF status = ?``: applied only when the status matches."""
        status, updated_at, user_id, course_id, transaction_id, expected = params
        for entry in self.rows:
            if (entry.user_id, entry.course_id, entry.transaction_id) == (
                user_id, course_id, transaction_id,
            ):
                if entry.status != expected:
                    return FakeResult([row(status=entry.status)], was_applied=False)
                entry.status = status
                entry.updated_at = updated_at
                return FakeResult()
        return FakeResult(was_applied=False)


class OutboxPartition:
    """Rows of the single outbox partition, keyed by (run_at, transaction_id)."""

    def __init__(self) -> None:
        self.rows: dict[tuple, Any] = {}

    def __call__(self, cql: str, params: list) -> FakeResult:
        if cql.startswith(f"INSERT INTO {KEYSPACE}.activation_outbox"):
            shard, run_at, txn_id, user_id, attempts, last_error, created_at = params
            self.rows[(run_at, txn_id)] = row(
                shard=shard,
                run_at=run_at,
                transaction_id=txn_id,
                user_id=user_id,
                attempts=attempts,
                last_error=last_error,
                created_at=created_at,
            )
        elif cql.startswith(f"DELETE FROM {KEYSPACE}.activation_outbox"):
            self.rows.pop((params[1], params[2]), None)
        elif "run_at <= ?" in cql:
            _, now, limit = params
            due = sorted(
                (r for key, r in self.rows.items() if key[0] <= now),
                key=lambda r: (r.run_at, r.transaction_id),
            )
            return FakeResult(due[:limit])
        elif cql.startswith(f"SELECT * FROM {KEYSPACE}.activation_outbox"):
            return FakeResult(list(self.rows.values()))
        return FakeResult()


class StoreFake:
    """One keyspace: every statement goes to the table it names."""

    def __init__(self) -> None:
        self.users = UserTable()
        self.catalog = CatalogStore()
        self.transactions = TransactionTable()
        self.ledger = LedgerTable()
        self.outbox = OutboxPartition()
        self._routes = [
            (".users", self.users),
            (".courses", self.catalog),
            (".course_", self.catalog),
            (".transactions", self.transactions),
            (".course_access", self.ledger),
            (".activation_", self.outbox),
        ]

    def __call__(self, cql: str, params: list) -> FakeResult:
        # Longest table name first so course_access is not taken for a catalog table
        for fragment, table in sorted(self._routes, key=lambda r: -len(r[0])):
            if f"{KEYSPACE}{fragment}" in cql:
                return table(cql, params)
        return FakeResult()

"""Database connection module."""

from src.core.database.cassandra import (
    CassandraConnection,
    init_cassandra,
    ping_cassandra,
    shutdown_cassandra,
)


__all__ = [
    "CassandraConnection",
    "init_cassandra",
    "ping_cassandra",
    "shutdown_cassandra",
]

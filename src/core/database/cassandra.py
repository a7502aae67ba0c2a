"""Cassandra database connection and management.

Provides:
- Connection pool management
- Session creation
- Keyspace and table initialization
- Connectivity probe for the health endpoint
"""

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, Session
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy

from src.access.models import ACCESS_TABLES_CQL
from src.activation.models import ACTIVATION_TABLES_CQL
from src.auth.models import AUTH_TABLES_CQL
from src.config.settings import get_settings
from src.courses.models import COURSES_TABLES_CQL
from src.purchases.models import PURCHASES_TABLES_CQL
from src.reviews.models import REVIEWS_TABLES_CQL


logger = structlog.get_logger(__name__)


# Table groups created at startup, in dependency-free order
TABLE_GROUPS: dict[str, list[str]] = {
    "auth": AUTH_TABLES_CQL,
    "courses": COURSES_TABLES_CQL,
    "purchases": PURCHASES_TABLES_CQL,
    "access": ACCESS_TABLES_CQL,
    "activation": ACTIVATION_TABLES_CQL,
    "reviews": REVIEWS_TABLES_CQL,
}


class CassandraConnection:
    """Cassandra connection manager.

    Manages cluster connection and session lifecycle.
    """

    _cluster: Cluster | None = None
    _session: Session | None = None

    @classmethod
    def connect(cls) -> Session:
        """Establish connection to Cassandra cluster.

        Returns:
            Active Cassandra session

        Raises:
            ConnectionError: If connection fails
        """
        if cls._session is not None:
            return cls._session

        settings = get_settings()

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            cls._session = cls._cluster.connect()
            logger.info(
                "cassandra_connected",
                hosts=settings.cassandra_hosts,
                port=settings.cassandra_port,
            )
        except Exception as e:
            logger.error("cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        """Close connection to Cassandra."""
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
            logger.info("cassandra_session_closed")

        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("cassandra_cluster_closed")


def init_keyspace(session: Session, keyspace: str) -> None:
    """Create keyspace if not exists.

    Args:
        session: Active Cassandra session
        keyspace: Keyspace name
    """
    settings = get_settings()

    if settings.is_production:
        replication = """
            'class': 'NetworkTopologyStrategy',
            'datacenter1': 3
        """
    else:
        replication = """
            'class': 'SimpleStrategy',
            'replication_factor': 1
        """

    cql = f"""
        CREATE KEYSPACE IF NOT EXISTS {keyspace}
        WITH replication = {{{replication}}}
        AND durable_writes = true
    """

    session.execute(cql)
    logger.info("keyspace_created", keyspace=keyspace)


def init_tables(session: Session, keyspace: str) -> None:
    """Create every table group for the given keyspace."""
    for group, statements in TABLE_GROUPS.items():
        for cql_template in statements:
            session.execute(cql_template.format(keyspace=keyspace))
        logger.info("tables_created", group=group, keyspace=keyspace)


def init_cassandra() -> Session:
    """Initialize Cassandra connection and schema.

    Returns:
        Configured Cassandra session
    """
    settings = get_settings()

    session = CassandraConnection.connect()
    init_keyspace(session, settings.cassandra_keyspace)
    session.set_keyspace(settings.cassandra_keyspace)
    init_tables(session, settings.cassandra_keyspace)

    logger.info("cassandra_initialized", keyspace=settings.cassandra_keyspace)

    return session


def ping_cassandra(session: Session | None) -> bool:
    """Return True if the store answers a trivial query."""
    if session is None or session.is_shutdown:
        return False
    try:
        session.execute("SELECT release_version FROM system.local").one()
    except Exception as e:
        logger.warning("cassandra_ping_failed", error=str(e))
        return False
    return True


def shutdown_cassandra() -> None:
    """Shutdown Cassandra connection."""
    CassandraConnection.disconnect()

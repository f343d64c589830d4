"""Database abstraction layer using SQLAlchemy 2.0 Core.

This module provides engine configuration and connection management. Record
access is synchronous: gateways run on a caller-provided Connection, inside
whatever transaction the caller opened. SQLite and PostgreSQL/MySQL URLs are
supported through their regular SQLAlchemy drivers.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from recordgate.core.config import Settings, get_settings
from recordgate.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for the bookkeeping models.

    All models should inherit from this class to get proper ORM mapping
    and metadata management.
    """

    pass


class DatabaseManager:
    """Database engine and connection manager.

    Example:
        db = DatabaseManager()
        db.create_tables()
        with db.connection() as conn:
            gateway = RecordGateway("articles", conn, dispatcher, services)
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize the database manager.

        Args:
            settings: Settings to use. Defaults to the cached settings.
        """
        self.settings = settings or get_settings()
        self._engine: Optional[Engine] = None

    @property
    def is_sqlite(self) -> bool:
        return self.settings.database_url.startswith("sqlite")

    @property
    def engine(self) -> Engine:
        """Get or create the database engine.

        In-memory SQLite databases share one connection so every
        Connection sees the same data.
        """
        if self._engine is None:
            url = self.settings.database_url
            kwargs = {}
            if self.is_sqlite:
                kwargs["connect_args"] = {"check_same_thread": False}
                if ":memory:" in url or url.rstrip("/") in ("sqlite:", "sqlite://"):
                    kwargs["poolclass"] = StaticPool

            self._engine = create_engine(url, echo=self.settings.db_echo, **kwargs)
            logger.info(
                "Database engine created",
                database_url=self._engine.url.render_as_string(hide_password=True),
            )
        return self._engine

    def create_tables(self) -> None:
        """Create the bookkeeping tables.

        Tables that already exist are left untouched.
        """
        # Registers every model with Base.metadata
        from recordgate.infrastructure.persistence import models  # noqa: F401

        with self.engine.begin() as conn:
            Base.metadata.create_all(conn)
        logger.info("Database tables created")

    def drop_tables(self) -> None:
        """Drop the bookkeeping tables.

        WARNING: This will delete all data. Only use in testing!
        """
        from recordgate.infrastructure.persistence import models  # noqa: F401

        with self.engine.begin() as conn:
            Base.metadata.drop_all(conn)
        logger.warning("Database tables dropped")

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Provide a transactional connection.

        The transaction commits when the block exits normally and rolls
        back when it raises.

        Yields:
            Connection: SQLAlchemy connection inside a transaction.
        """
        with self.engine.begin() as conn:
            yield conn

    def check_connection(self) -> bool:
        """Check if the database connection is working."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.debug("Database connection check successful")
            return True
        except SQLAlchemyError as e:
            logger.error("Database connection check failed", error=str(e))
            return False

    def dispose(self) -> None:
        """Close the engine and all pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database engine disposed")


# Global database manager instance
_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    """Get the global database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def init_database(db: Optional[DatabaseManager] = None) -> DatabaseManager:
    """Initialize the database.

    Creates the SQLite directory when needed, checks the connection and
    creates the bookkeeping tables.

    Raises:
        RuntimeError: If the database cannot be reached.
    """
    db = db or get_db_manager()

    if db.is_sqlite and ":memory:" not in db.settings.database_url:
        db_path = db.settings.database_url.split(":///")[-1]
        db_dir = Path(db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Database directory created", path=str(db_dir))

    if not db.check_connection():
        logger.error("Database connection failed")
        raise RuntimeError("Failed to connect to database")

    db.create_tables()
    return db

"""Core database functionality and configuration.

`Database` owns the SQLAlchemy engine and session factory. One instance is
constructed at process start (by the application factory or a script) and
handed to every service that needs persistence.
"""

from contextlib import contextmanager
import logging
from pathlib import Path
from typing import Optional, Dict, Any, Generator
import os

from sqlalchemy import create_engine, Engine, inspect
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config.environment import IS_PRODUCTION_ENVIRONMENT
from ..errors import DecklyError
from ..models import Base

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_PATH = Path(__file__).parent.parent.parent / 'data' / 'deckly.db'


class DatabaseConfig:
    """Database configuration settings."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        sqlite_path: Optional[Path] = None,
        echo: bool = False,
        pool_size: int = 3,
        max_overflow: int = 4,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        pool_pre_ping: bool = True
    ):
        """
        Initialize database configuration.

        In production environment, DATABASE_URL must be set in environment variables
        or provided explicitly via database_url parameter.

        Args:
            database_url: Full SQLAlchemy URL; wins over everything else
            sqlite_path: Path to SQLite database file (for development)
            echo: Whether to echo SQL statements
            pool_size: Size of the connection pool (permanent connections)
            max_overflow: Maximum number of extra connections to allow temporarily
            pool_timeout: Seconds to wait for an available connection
            pool_recycle: Seconds before connections are recycled (prevent stale)
            pool_pre_ping: Whether to ping connections before using them

        Raises:
            ValueError: If in production environment and no database URL is provided
        """
        url = database_url or os.environ.get('DATABASE_URL')
        self.sqlite_path: Optional[Path] = None
        if not url:
            if IS_PRODUCTION_ENVIRONMENT:
                raise ValueError(
                    "Database URL must be provided either via database_url parameter "
                    "or DATABASE_URL environment variable when in production environment"
                )
            self.sqlite_path = sqlite_path or DEFAULT_SQLITE_PATH
            url = f"sqlite:///{self.sqlite_path}"

        self.database_url = url
        self.echo = echo
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self.pool_pre_ping = pool_pre_ping

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith('sqlite')

    @property
    def connection_url(self) -> str:
        """Get the database connection URL."""
        # Hosted Postgres providers hand out postgres:// URLs, which SQLAlchemy no longer accepts
        if self.database_url.startswith('postgres://'):
            return self.database_url.replace('postgres://', 'postgresql://', 1)
        return self.database_url

    def get_engine_args(self) -> Dict[str, Any]:
        """Get SQLAlchemy engine arguments based on configuration."""
        args: Dict[str, Any] = {"echo": self.echo}

        if self.is_sqlite:
            args["connect_args"] = {"check_same_thread": False}
            args["poolclass"] = StaticPool
        else:
            args.update({
                "pool_size": self.pool_size,
                "max_overflow": self.max_overflow,
                "pool_timeout": self.pool_timeout,
                "pool_recycle": self.pool_recycle,
                "pool_pre_ping": self.pool_pre_ping
            })

        return args


class DatabaseError(Exception):
    """Base exception for database-related errors."""
    pass


class ConnectionError(DatabaseError):
    """Raised when there are issues connecting to the database."""
    pass


class SessionError(DatabaseError):
    """Raised when there are issues with database sessions."""
    pass


class Database:
    """Engine and session management for one database."""

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or DatabaseConfig()
        self.engine: Optional[Engine] = None
        self._session_factory = sessionmaker(expire_on_commit=False)
        self._tables_checked = False

        self._setup_engine()

    def _setup_engine(self) -> None:
        """Set up the SQLAlchemy engine."""
        if self.config.sqlite_path:
            self.config.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.engine = create_engine(
                self.config.connection_url,
                **self.config.get_engine_args()
            )
            self._session_factory.configure(bind=self.engine)
        except Exception as e:
            raise ConnectionError(f"Failed to create database engine: {e}") from e

    def init_db(self) -> None:
        """Create all tables."""
        if not self.engine:
            raise ConnectionError("Database engine not initialized")

        try:
            Base.metadata.create_all(self.engine)
            self._tables_checked = True
            logger.info("Database schema initialized successfully")
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to initialize database schema: {e}") from e

    def ensure_tables_exist(self) -> None:
        """Ensure all required database tables exist."""
        if self._tables_checked:
            return
        if not self.engine:
            raise ConnectionError("Database engine not initialized")

        try:
            existing_tables = set(inspect(self.engine).get_table_names())
            required_tables = set(Base.metadata.tables)

            if not required_tables <= existing_tables:
                logger.info("Some tables missing, initializing database schema")
                Base.metadata.create_all(self.engine)
                logger.info("Database schema initialized successfully")

            self._tables_checked = True

        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to verify/create database schema: {e}") from e

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Commits when the block finishes and rolls back on any exception.
        Domain errors raised inside the block propagate unchanged; SQLAlchemy
        failures are wrapped in SessionError.

        Example:
            with database.session() as session:
                event = session.get(Event, event_id)
                event.status = EventStatus.CONFIRMED

        Raises:
            SessionError: If there are issues with the session
            DatabaseError: If database schema verification fails
        """
        self.ensure_tables_exist()

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except (DecklyError, OperationalError):
            # Operational errors stay unwrapped so with_retry can see them
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            raise SessionError(f"Database session error: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Close all pooled connections."""
        if self.engine:
            self.engine.dispose()

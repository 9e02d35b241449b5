"""
Database Connection Module
Handles connection pooling and session management using SQLAlchemy.
"""

import os
from contextlib import contextmanager
from typing import Generator, Optional

from flask import current_app
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from tracker_hub.config_manager import ConfigManager, get_config
from tracker_hub.database.models import Base
from tracker_hub.utils.logger import get_logger

logger = get_logger(__name__)

EXTENSION_KEY = 'tracker_hub.db'


class DatabaseConnection:
    """Manages database connections with connection pooling."""

    def __init__(self, url: Optional[str] = None, config: Optional[ConfigManager] = None):
        """
        Create the engine and session factory.

        Args:
            url: Optional SQLAlchemy URL; built from configuration when omitted
            config: Optional configuration; the shared one is used when omitted
        """
        config = config or get_config()
        db_config = config.get_database_config()

        self.url = url or db_config.get('url') or self._build_connection_url(db_config)
        self._engine = self._create_engine(self.url, db_config)
        self._session_factory = sessionmaker(bind=self._engine)

        logger.info("Database engine initialized successfully")

    def _create_engine(self, url: str, db_config: dict) -> Engine:
        """Create SQLAlchemy engine; SQLite gets foreign keys enforced."""
        echo = os.getenv('SQL_ECHO', 'false').lower() == 'true'

        if url.startswith('sqlite'):
            if self._is_memory_url(url):
                # One shared connection, otherwise each checkout sees an empty database
                engine = create_engine(
                    url,
                    poolclass=StaticPool,
                    connect_args={'check_same_thread': False},
                    echo=echo
                )
            else:
                engine = create_engine(
                    url,
                    connect_args={'check_same_thread': False},
                    echo=echo
                )

            @event.listens_for(engine, 'connect')
            def _enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute('PRAGMA foreign_keys=ON')
                cursor.close()

            return engine

        logger.info(
            f"Initializing database connection to "
            f"{db_config.get('host')}:{db_config.get('port')}/{db_config.get('name')}"
        )

        return create_engine(
            url,
            poolclass=QueuePool,
            pool_size=db_config.get('pool_size', 5),
            max_overflow=db_config.get('max_overflow', 10),
            pool_timeout=db_config.get('pool_timeout', 30),
            pool_pre_ping=True,  # Enable connection health checks
            echo=echo
        )

    @staticmethod
    def _is_memory_url(url: str) -> bool:
        database = make_url(url).database
        return not database or database == ':memory:' or 'mode=memory' in url

    def _build_connection_url(self, db_config: dict) -> str:
        """Build PostgreSQL connection URL from config."""
        host = db_config.get('host', 'localhost')
        port = db_config.get('port', 5432)
        name = db_config.get('name', 'tracker_hub')
        user = db_config.get('user', 'tracker_hub')
        password = db_config.get('password', '')

        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"

    @property
    def engine(self) -> Engine:
        """Get the SQLAlchemy engine."""
        return self._engine

    def create_all(self) -> None:
        """Create any missing tables."""
        Base.metadata.create_all(self._engine)

    def get_session(self) -> Session:
        """Create a new database session."""
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Usage:
            with db.session_scope() as session:
                session.query(...)
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def check_connection(self) -> bool:
        """
        Check if database connection is healthy.

        Returns:
            bool: True if connection is healthy, False otherwise.
        """
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.debug("Database connection health check passed")
            return True
        except Exception as e:
            logger.error(f"Database connection health check failed: {e}")
            return False

    def dispose(self) -> None:
        """Dispose of the connection pool."""
        if self._engine:
            self._engine.dispose()
            logger.info("Database connection pool disposed")


def get_db() -> DatabaseConnection:
    """Get the database connection bound to the current application."""
    return current_app.extensions[EXTENSION_KEY]


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Convenience function to get a database session.

    Usage:
        with get_session() as session:
            session.query(...)
    """
    db = get_db()
    with db.session_scope() as session:
        yield session

"""PostgreSQL connection and utilities."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import psycopg2
from psycopg2.extras import RealDictCursor
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from storefront.config import DATABASE_URL, POSTGRES_CONFIG, TRANSACTION_TIMEOUT_MS
from storefront.db.postgres_bootstrap import Base
from storefront.models import *  # Needed for Base metadata

logger = logging.getLogger(__name__)


class PostgresConnection:
    """Owns the engine and session factory for one running service instance."""

    def __init__(
        self,
        config: dict | None = None,
        url: str | None = None,
        timeout_ms: int = TRANSACTION_TIMEOUT_MS,
    ):
        self.config = config or POSTGRES_CONFIG
        self.url = url or DATABASE_URL
        self.timeout_ms = timeout_ms
        self._engine = None
        self._session_factory = None

    @property
    def db_url(self) -> str:
        if self.url:
            return self.url
        return (
            f"postgresql+psycopg2://{self.config['user']}:{self.config['password']}@"
            f"{self.config['host']}:{self.config['port']}/{self.config['database']}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.db_url.startswith("sqlite")

    def _connect_args(self) -> dict:
        if self.is_sqlite:
            # Sessions are handed across worker threads; writers wait instead of failing fast
            return {"check_same_thread": False, "timeout": max(self.timeout_ms / 1000, 1)}
        return {"options": f"-c statement_timeout={self.timeout_ms} -c lock_timeout={self.timeout_ms}"}

    @property
    def engine(self) -> Engine:
        if not self._engine:
            self._engine = create_engine(self.db_url, connect_args=self._connect_args(), pool_pre_ping=True)
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if not self._session_factory:
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._session_factory

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """One unit of work: commit on clean exit, roll back on any exception."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def get_cursor(self):
        """Get a database cursor for raw SQL queries, on the same database as the engine."""
        if self.url:
            if self.is_sqlite:
                raise ValueError("Raw cursors need a PostgreSQL database")
            conn = self.engine.raw_connection()
        else:
            conn = psycopg2.connect(**self.config)
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                yield cursor
                conn.commit()
        except Exception as e:
            conn.rollback()
            raise e
        finally:
            conn.close()

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def create_tables(self):
        """Create all tables in the database."""
        logger.log(logging.INFO, "Creating tables...")

        try:
            Base.metadata.create_all(self.engine)
            logger.log(logging.INFO, "Tables created successfully.")
        except Exception as e:
            logger.log(logging.ERROR, f"Error creating tables: {e}")
            raise e

    def dispose(self):
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_memory_sqlite(url: str) -> bool:
    return _is_sqlite(url) and (url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:") or ":memory:" in url)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses unless asked per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Store handle: owns the engine and the session factory.

    Opened once at application startup and disposed at shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = self._create_engine(url, echo)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @staticmethod
    def _create_engine(url: str, echo: bool) -> Engine:
        if _is_sqlite(url):
            kwargs = {"connect_args": {"check_same_thread": False}}
            if _is_memory_sqlite(url):
                # One shared connection, otherwise every session sees an empty database.
                kwargs["poolclass"] = StaticPool
            engine = create_engine(url, echo=echo, **kwargs)
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            return engine
        return create_engine(
            url,
            pool_pre_ping=True,
            pool_recycle=300,
            echo=echo,
        )

    def create_all(self) -> None:
        """Create all tables if they don't exist."""
        # Registers the mapped classes on Base.metadata.
        import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ready (%s)", self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connections closed")


def get_db(request: Request) -> Iterator[Session]:
    """Dependency that provides a DB session and ensures it's closed after use."""
    database: Database = request.app.state.database
    with database.session() as db:
        yield db

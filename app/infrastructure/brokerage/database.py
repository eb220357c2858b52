"""
Database engine and session factory for the ledger store.

PostgreSQL is the production target; SQLite is supported for local
development and tests. Row locks (``SELECT ... FOR UPDATE``) are
emitted on PostgreSQL and silently skipped by SQLite, which
serializes writers at the database level instead.
"""

import logging

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.infrastructure.brokerage.models import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine for the given URL.

    In-memory SQLite URLs share a single connection so that every
    session sees the same database.

    Args:
        database_url: SQLAlchemy database URL.
        echo: Log emitted SQL.

    Returns:
        A configured Engine.
    """
    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory bound to ``engine``.

    Objects are not expired on commit so that entities built from rows
    remain readable after the unit of work ends.
    """
    return sessionmaker(bind=engine, expire_on_commit=False, autoflush=True)


def init_db(engine: Engine) -> None:
    """Create all ledger tables that do not exist yet."""
    Base.metadata.create_all(engine)
    logger.info("Ledger tables ensured on %s", engine.url.render_as_string(hide_password=True))


def ping(engine: Engine) -> bool:
    """Return True if the ledger database answers a trivial query."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Ledger database unreachable: %s", exc)
        return False
    return True

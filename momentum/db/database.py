"""
Database engine and session management.

Builds the SQLAlchemy engine from `StoreSettings`. In-memory SQLite uses a
StaticPool so every session shares the one connection that holds the data.
"""
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from momentum.config import StoreSettings
from momentum.db import models

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):  # pragma: no cover - driver hook
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(settings: StoreSettings) -> Engine:
    """Create the engine described by ``settings``."""
    kwargs = {"echo": settings.echo}
    if settings.is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if settings.is_in_memory:
            kwargs["poolclass"] = StaticPool
        else:
            path = settings.sqlite_path
            if path is not None:
                path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(settings.database_url, **kwargs)
    if settings.is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_schema(engine: Engine) -> None:
    """Create any missing tables; a no-op on an up-to-date database."""
    models.Base.metadata.create_all(bind=engine)
    logger.debug(f"Schema ensured on {engine.url!r}")


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

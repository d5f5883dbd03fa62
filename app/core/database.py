"""Database engine and session management utilities."""
from collections.abc import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from app.db import Base, models  # noqa: F401  # Ensure models are imported for metadata registration

from .settings import get_settings


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """Let SQLAlchemy own BEGIN on pysqlite so SAVEPOINTs nest correctly.

    Ledger side effects run in nested transactions; without this the driver
    would let a released savepoint commit the whole transaction.
    """

    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection) -> None:
        connection.exec_driver_sql("BEGIN")

    return engine


def build_engine(database_url: str) -> Engine:
    return enable_sqlite_savepoints(create_engine(database_url, future=True))


_settings = get_settings()

ENGINE = build_engine(_settings.database_url)
SessionLocal = sessionmaker(bind=ENGINE, class_=Session, autoflush=False, autocommit=False)


def get_db_session() -> Generator[Session, None, None]:
    """Yield a database session, rolling back anything left uncommitted."""

    session = SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_database_schema() -> None:
    """Create ledger tables based on ORM metadata."""

    Base.metadata.create_all(bind=ENGINE)

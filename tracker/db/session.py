from sqlalchemy import event
from sqlmodel import SQLModel, create_engine, Session
import structlog
from tracker.core.config import settings

logger = structlog.get_logger(__name__)

# Global engine instance, created on first use
_engine = None


def _apply_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    # WAL lets readers proceed while a payment is being written
    cursor.execute("PRAGMA journal_mode = WAL")
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.execute("PRAGMA busy_timeout = 5000")
    cursor.close()


def get_engine():
    global _engine

    if _engine is not None:
        return _engine

    db_url = settings.database_url

    if settings.is_sqlite:
        settings.ensure_db_dir()
        # SQLite fix for multithreading
        _engine = create_engine(db_url, connect_args={"check_same_thread": False})
        event.listen(_engine, "connect", _apply_sqlite_pragmas)
    else:
        _engine = create_engine(db_url, pool_pre_ping=True)

    logger.info("database_engine_created", backend=_engine.dialect.name)
    return _engine


def init_db(engine=None) -> None:
    """Create missing tables. Existing tables are left untouched."""
    # Registers the table models on SQLModel.metadata
    import tracker.models  # noqa: F401

    engine = engine or get_engine()
    SQLModel.metadata.create_all(engine)
    logger.info("database_initialized", tables=sorted(SQLModel.metadata.tables))


def get_db():
    with Session(get_engine()) as session:
        yield session

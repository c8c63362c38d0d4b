"""Database helpers: engines, session factories and DB initialization.

Reads and writes use separate engines so a read replica can be configured
with `READ_DATABASE_URL`; by default both point at `DATABASE_URL`.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from core.config import get_settings
from core.logger import get_logger
from .models import Base

logger = get_logger("database")

settings = get_settings()


def _connect_args(url: str) -> dict:
    # SQLite connections are shared between the threadpool workers
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# Engines
write_engine = create_engine(settings.write_database_url, connect_args=_connect_args(settings.write_database_url))
read_engine = create_engine(settings.read_database_url, connect_args=_connect_args(settings.read_database_url))


def _enable_sqlite_savepoints(engine):
    # pysqlite delays BEGIN on its own, which breaks SAVEPOINT; let SQLAlchemy emit it
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


for _engine in {write_engine, read_engine}:
    if _engine.url.get_backend_name() == "sqlite":
        _enable_sqlite_savepoints(_engine)

# Session factories
WriteSessionLocal = sessionmaker(bind=write_engine)
ReadSessionLocal = sessionmaker(bind=read_engine)


def init_db():
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=write_engine)
    logger.info("Database schema ready")


def drop_db():
    """Drop every table. Used by the test-suite between tests."""
    Base.metadata.drop_all(bind=write_engine)


# Convenience generators for dependency injection
def get_write_session():
    """Yield a write-enabled SQLAlchemy session for the request scope.

    Use this generator as a FastAPI dependency to ensure the session is
    properly closed after the request completes.
    """
    db = WriteSessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_read_session():
    """Yield a read-only SQLAlchemy session for the request scope."""
    db = ReadSessionLocal()
    try:
        yield db
    finally:
        db.close()

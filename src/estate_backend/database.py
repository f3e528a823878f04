import logging
from contextlib import contextmanager
from typing import Generator
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, Session

from estate_backend.settings import settings

logger = logging.getLogger(__name__)

_database_options = {
    "pool_pre_ping": True,
    "pool_recycle": 300
}

# Only valid for the default QueuePool
_queue_pool_options = {
    "pool_size": 10,
    "max_overflow": 5,
    "pool_timeout": 30,
}


def engine_options(url: str, **kwargs) -> dict:
    if url.startswith("sqlite"):
        return kwargs
    if "poolclass" in kwargs:
        return {**_database_options, **kwargs}
    return {**_database_options, **_queue_pool_options, **kwargs}


def build_engine(url: str, **kwargs) -> Engine:

    options = engine_options(url, **kwargs)

    if not url.startswith("sqlite"):
        return create_engine(url, **options)

    engine = create_engine(url, **options)

    # pysqlite defers BEGIN until the first DML statement; emit it ourselves so
    # role administration runs in one real transaction and FKs are enforced.
    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


_engine = build_engine(settings.DATABASE_URL)
_SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

def get_engine() -> Engine:
    return _engine

def get_db() -> Generator[Session, None, None]:

    db = _SessionLocal()

    try:
        yield db
    except OperationalError:
        logger.error("Database connection failed")
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """Commit the enclosed writes as one unit, roll everything back on failure."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise

from __future__ import annotations

from pathlib import Path

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .config import settings


class Base(DeclarativeBase):
    pass


def install_sqlite_hooks(engine: Engine) -> None:
    """FK enforcement, WAL, and driver-independent transaction control.

    pysqlite defers BEGIN on its own and does not cooperate with SAVEPOINT, so
    autocommit is switched off at the driver level and SQLAlchemy emits BEGIN
    itself. The merge import relies on nested savepoints behaving.
    """

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[override]
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def do_begin(conn):  # type: ignore[override]
        conn.exec_driver_sql("BEGIN")


def _ensure_sqlite_dir(url: str) -> None:
    parsed = make_url(url)
    if parsed.database and parsed.database != ":memory:":
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


_is_sqlite = settings.DATABASE_URL.startswith("sqlite")
if _is_sqlite:
    _ensure_sqlite_dir(settings.DATABASE_URL)

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

if _is_sqlite:
    install_sqlite_hooks(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

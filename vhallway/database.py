import logging
import sqlite3
import uuid
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from vhallway.config.loader import get_database_url, load_config

_DEFAULT_SQLITE_BUSY_TIMEOUT_MS = 30000
_DEFAULT_SQLITE_JOURNAL_MODE = "WAL"
_DEFAULT_SQLITE_SYNCHRONOUS = "NORMAL"


def _get_sqlite_settings() -> dict:
    config = load_config()
    sqlite_config = config.get("sqlite") or {}

    def _coerce_positive_int(value, fallback):
        try:
            candidate = int(value)
            return candidate if candidate > 0 else fallback
        except Exception:  # noqa: BLE001
            return fallback

    journal_mode = sqlite_config.get("journal_mode") or _DEFAULT_SQLITE_JOURNAL_MODE
    synchronous = sqlite_config.get("synchronous") or _DEFAULT_SQLITE_SYNCHRONOUS
    busy_timeout_ms = _coerce_positive_int(
        sqlite_config.get("busy_timeout_ms"), _DEFAULT_SQLITE_BUSY_TIMEOUT_MS
    )
    return {
        "journal_mode": str(journal_mode),
        "synchronous": str(synchronous),
        "busy_timeout_ms": busy_timeout_ms,
    }


def _ensure_sqlite_directory(database_url: str) -> None:
    if not database_url.startswith("sqlite"):
        return
    db_url = make_url(database_url)
    if not db_url.database or db_url.database == ":memory:":
        return
    db_path = Path(db_url.database)
    if not db_path.is_absolute():
        db_path = Path.cwd() / db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)


DATABASE_URL = get_database_url()

logger = logging.getLogger("database")

_ensure_sqlite_directory(DATABASE_URL)

connect_args = {}
_sqlite_settings = None
if DATABASE_URL.startswith("sqlite"):
    _sqlite_settings = _get_sqlite_settings()
    connect_args["check_same_thread"] = False
    connect_args["timeout"] = max(1, _sqlite_settings["busy_timeout_ms"] / 1000)

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
)


def configure_sqlite_transactions(target: Engine) -> None:
    """Let SQLAlchemy own BEGIN on pysqlite so SAVEPOINTs nest inside it.

    Left to itself the driver defers BEGIN until the first DML statement, so a
    SAVEPOINT opened first runs outside any transaction and its RELEASE
    commits immediately.
    """

    @event.listens_for(target, "connect")
    def _disable_driver_begin(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _emit_begin(connection) -> None:
        connection.exec_driver_sql("BEGIN")


if DATABASE_URL.startswith("sqlite"):
    configure_sqlite_transactions(engine)


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, _connection_record) -> None:
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    settings = _sqlite_settings or _get_sqlite_settings()
    cursor = dbapi_connection.cursor()
    cursor.execute(f"PRAGMA journal_mode={settings['journal_mode']}")
    cursor.execute(f"PRAGMA synchronous={settings['synchronous']}")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute(f"PRAGMA busy_timeout={settings['busy_timeout_ms']}")
    cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    req_id = uuid.uuid4()
    logger.debug(f"[DB_SESSION_START][{req_id}] Creating database session.")
    db = SessionLocal()
    try:
        logger.debug(f"[DB_SESSION_YIELD][{req_id}] Yielding database session.")
        yield db
    except Exception:
        logger.debug(f"[DB_SESSION_ROLLBACK][{req_id}] Rolling back database session.")
        db.rollback()
        raise
    finally:
        logger.debug(f"[DB_SESSION_END][{req_id}] Closing database session.")
        db.close()

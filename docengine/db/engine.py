"""Engine creation with SQLite PRAGMAs and explicit transaction begin."""
from sqlalchemy import event
from sqlalchemy.engine import Engine, create_engine

from docengine.db.config import DBConfig


def _apply_sqlite_pragmas(dbapi_conn, connection_record, cfg: DBConfig):
    # PRAGMA journal_mode cannot run inside a transaction. Engine is created
    # with isolation_level=None so we're in autocommit here.
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute(f"PRAGMA journal_mode={cfg.sqlite_journal_mode};")
        cursor.execute(f"PRAGMA foreign_keys={'ON' if cfg.sqlite_foreign_keys else 'OFF'};")
        cursor.execute(f"PRAGMA synchronous={cfg.sqlite_synchronous};")
        cursor.execute(f"PRAGMA busy_timeout={cfg.sqlite_busy_timeout_ms};")
    finally:
        cursor.close()


def _begin_sqlite_transaction(conn) -> None:
    # pysqlite in autocommit mode never opens a transaction on its own.
    # IMMEDIATE takes the write lock up front: concurrent writers wait on
    # busy_timeout instead of failing when a read snapshot goes stale, so
    # read-max-then-insert in the version store is serialized.
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_from_config(cfg: DBConfig) -> Engine:
    """Create SQLAlchemy engine. SQLite gets PRAGMAs and real transactions."""
    is_sqlite = cfg.db_url.startswith("sqlite")
    # Sessions may be opened from worker threads (asyncio.to_thread), one at a time.
    connect_args = {"isolation_level": None, "check_same_thread": False} if is_sqlite else {}
    engine = create_engine(
        cfg.db_url,
        echo=cfg.echo_sql,
        connect_args=connect_args,
        pool_pre_ping=cfg.pool_pre_ping and not is_sqlite,
    )
    if is_sqlite:
        event.listens_for(engine, "connect")(
            lambda c, cr: _apply_sqlite_pragmas(c, cr, cfg)
        )
        event.listens_for(engine, "begin")(_begin_sqlite_transaction)
    return engine

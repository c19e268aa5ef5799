"""Alembic env.py: target_metadata from Base, models imported for autogenerate."""
from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from sqlalchemy.engine import Connection
from alembic import context

# Import Base and all ORM models so autogenerate sees tables
from docengine.db.base import Base
from docengine.db.config import DBConfig
import docengine.db.models  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)
target_metadata = Base.metadata


def get_url() -> str:
    """Database URL from alembic.ini if set there, else DB_DB_URL / .env."""
    url = config.get_main_option("sqlalchemy.url")
    if url:
        return url
    return DBConfig().db_url


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a live connection."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # Tests pass an open connection through config.attributes.
    connectable = context.config.attributes.get("connection", None)
    if connectable is not None:
        do_run_migrations(connectable)
        return
    engine = create_engine(get_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        do_run_migrations(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

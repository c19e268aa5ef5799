"""DB module: config, engine, session, models, repositories."""
from docengine.db.config import DBConfig
from docengine.db.session import init_db, session_scope

__all__ = ["DBConfig", "init_db", "session_scope"]

"""Pytest config and fixtures: temp-file SQLite with seeded workspace, objective and chats."""
import os
import tempfile

import pytest

from docengine.db.base import Base
from docengine.db.config import DBConfig
from docengine.db.engine import create_engine_from_config
from docengine.db.repositories import ChatRepo, KnowledgeRepo, ObjectiveRepo, WorkspaceRepo
from docengine.db.session import get_engine, init_db, session_scope
from docengine.documents.settings import DocumentSettings
from fakes import USER

# Import models so Base.metadata has all tables
import docengine.db.models  # noqa: F401

@pytest.fixture
def temp_db_url() -> str:
    """SQLite URL for a temporary file (WAL-friendly)."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield f"sqlite:///{path}"
    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(path + suffix)
        except OSError:
            pass

@pytest.fixture
def db_config(temp_db_url: str) -> DBConfig:
    return DBConfig(db_url=temp_db_url, echo_sql=False)

@pytest.fixture
def sync_engine(db_config: DBConfig):
    engine = create_engine_from_config(db_config)
    yield engine
    engine.dispose()

@pytest.fixture
def db(db_config: DBConfig):
    """init_db() on the temp file with all tables created; services use session_scope()."""
    init_db(db_config)
    Base.metadata.create_all(get_engine())
    yield
    get_engine().dispose()

@pytest.fixture
def settings() -> DocumentSettings:
    return DocumentSettings()

@pytest.fixture
def workspace(db):
    with session_scope() as s:
        return WorkspaceRepo().create(s, "Acme", USER)

@pytest.fixture
def objective(workspace):
    with session_scope() as s:
        return ObjectiveRepo().create(s, workspace.id, "Close Q3 deal")

@pytest.fixture
def make_chat(workspace, objective):
    def _make(user_id: str = USER):
        with session_scope() as s:
            return ChatRepo().create(s, workspace.id, user_id, objective_id=objective.id, title="chat")
    return _make

@pytest.fixture
def make_knowledge(workspace):
    def _make(title: str, content: str | None, workspace_id: str | None = None):
        with session_scope() as s:
            return KnowledgeRepo().create(
                s,
                workspace_id or workspace.id,
                USER,
                title=title,
                content=content,
            )
    return _make


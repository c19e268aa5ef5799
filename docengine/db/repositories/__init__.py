"""Repositories: session-first CRUD helpers that flush, never commit."""
from docengine.db.repositories.workspace_repo import WorkspaceRepo
from docengine.db.repositories.objective_repo import ObjectiveRepo
from docengine.db.repositories.chat_repo import ChatRepo
from docengine.db.repositories.document_repo import DocumentRepo
from docengine.db.repositories.version_repo import VersionRepo
from docengine.db.repositories.knowledge_repo import KnowledgeRepo

__all__ = [
    "WorkspaceRepo",
    "ObjectiveRepo",
    "ChatRepo",
    "DocumentRepo",
    "VersionRepo",
    "KnowledgeRepo",
]

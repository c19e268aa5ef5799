"""Pydantic DTOs for DB entities."""
from docengine.db.schemas.workspace import WorkspaceCreate, WorkspaceDTO
from docengine.db.schemas.objective import ObjectiveDTO
from docengine.db.schemas.chat import ChatBinding, ChatDTO
from docengine.db.schemas.knowledge import KnowledgeDocumentDTO
from docengine.db.schemas.document import (
    DocumentDTO,
    DocumentWithVersions,
    EnvelopeView,
    VersionDTO,
    WorkspaceDocumentEntry,
)

__all__ = [
    "WorkspaceCreate",
    "WorkspaceDTO",
    "ObjectiveDTO",
    "ChatBinding",
    "ChatDTO",
    "KnowledgeDocumentDTO",
    "DocumentDTO",
    "DocumentWithVersions",
    "EnvelopeView",
    "VersionDTO",
    "WorkspaceDocumentEntry",
]

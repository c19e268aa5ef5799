# ORM models; import all so Alembic can autogenerate from Base.metadata.
from docengine.db.models.workspace import Workspace
from docengine.db.models.objective import Objective
from docengine.db.models.document import Document, DocumentVersion
from docengine.db.models.chat import Chat
from docengine.db.models.knowledge import KnowledgeDocument

__all__ = [
    "Workspace",
    "Objective",
    "Document",
    "DocumentVersion",
    "Chat",
    "KnowledgeDocument",
]

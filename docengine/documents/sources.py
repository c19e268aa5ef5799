"""Source material for generation: resolver port plus the knowledge-table implementation."""
from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from docengine.db.repositories import KnowledgeRepo
from docengine.db.session import session_scope
from docengine.documents.errors import store_boundary

logger = logging.getLogger(__name__)


class SourceDocument(BaseModel):
    id: str
    title: str
    content: str


@runtime_checkable
class SourceResolverPort(Protocol):
    def resolve(self, ids: list[str], workspace_id: str) -> list[SourceDocument]:
        """Documents for the ids that resolve, in request order. Unresolved ids are omitted."""
        ...


class KnowledgeSourceResolver:
    """Resolves ids against knowledge_documents in the caller's workspace.

    Rows without content count as unresolved.
    """

    def __init__(self) -> None:
        self._repo = KnowledgeRepo()

    def resolve(self, ids: list[str], workspace_id: str) -> list[SourceDocument]:
        unique_ids = list(dict.fromkeys(ids))
        with store_boundary("resolve_sources"), session_scope() as session:
            rows = self._repo.get_many(session, unique_ids, workspace_id)
        resolved = [
            SourceDocument(id=r.id, title=r.title, content=r.content)
            for r in rows
            if r.content and r.content.strip()
        ]
        if len(resolved) < len(unique_ids):
            logger.info(
                "sources_unresolved",
                extra={
                    "workspace_id": workspace_id,
                    "requested": len(unique_ids),
                    "resolved": len(resolved),
                },
            )
        return resolved

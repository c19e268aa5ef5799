"""Knowledge (source) document repository."""
from sqlalchemy import select
from sqlalchemy.orm import Session

from docengine.db.models.knowledge import KnowledgeDocument
from docengine.db.schemas.knowledge import KnowledgeDocumentDTO


class KnowledgeRepo:
    def create(
        self,
        session: Session,
        workspace_id: str,
        created_by_user_id: str,
        title: str,
        content: str | None,
        objective_id: str | None = None,
        category: str = "knowledge",
        document_type: str | None = None,
    ) -> KnowledgeDocumentDTO:
        k = KnowledgeDocument(
            workspace_id=workspace_id,
            created_by_user_id=created_by_user_id,
            title=title,
            content=content,
            objective_id=objective_id,
            category=category,
            document_type=document_type,
        )
        session.add(k)
        session.flush()
        return KnowledgeDocumentDTO.model_validate(k)

    def get_many(
        self, session: Session, ids: list[str], workspace_id: str
    ) -> list[KnowledgeDocumentDTO]:
        """Rows among ids that belong to workspace_id, in the order of ids."""
        if not ids:
            return []
        rows = session.execute(
            select(KnowledgeDocument).where(
                KnowledgeDocument.id.in_(ids),
                KnowledgeDocument.workspace_id == workspace_id,
            )
        ).scalars().all()
        by_id = {r.id: r for r in rows}
        return [KnowledgeDocumentDTO.model_validate(by_id[i]) for i in ids if i in by_id]

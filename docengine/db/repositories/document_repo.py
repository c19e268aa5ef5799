"""Document repository."""
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from docengine.db.base import utc_now
from docengine.db.models.document import Document
from docengine.db.models.workspace import Workspace
from docengine.db.schemas.document import DocumentDTO


class DocumentRepo:
    def create(
        self,
        session: Session,
        workspace_id: str,
        title: str,
        created_by_user_id: str,
        document_type: str | None = None,
    ) -> DocumentDTO:
        d = Document(
            workspace_id=workspace_id,
            title=title,
            created_by_user_id=created_by_user_id,
            document_type=document_type,
        )
        session.add(d)
        session.flush()
        return DocumentDTO.model_validate(d)

    def get(self, session: Session, id: str) -> DocumentDTO | None:
        row = session.get(Document, id)
        return DocumentDTO.model_validate(row) if row else None

    def get_owned(self, session: Session, id: str, user_id: str) -> DocumentDTO | None:
        """Document reachable by user_id through an active workspace they own."""
        row = session.execute(
            select(Document)
            .join(Workspace, Workspace.id == Document.workspace_id)
            .where(
                Document.id == id,
                Workspace.user_id == user_id,
                Workspace.deleted_at.is_(None),
            )
        ).scalar_one_or_none()
        return DocumentDTO.model_validate(row) if row else None

    def touch(self, session: Session, id: str) -> None:
        row = session.get(Document, id)
        if row:
            row.updated_at = utc_now()
            session.flush()

    def set_slots(
        self,
        session: Session,
        id: str,
        *,
        draft_version_id: str | None,
        published_version_id: str | None,
        is_searchable: bool,
    ) -> DocumentDTO | None:
        """Write all three publication fields at once."""
        row = session.get(Document, id)
        if not row:
            return None
        row.draft_version_id = draft_version_id
        row.published_version_id = published_version_id
        row.is_searchable = is_searchable
        row.updated_at = utc_now()
        session.flush()
        return DocumentDTO.model_validate(row)

    def delete(self, session: Session, id: str) -> int:
        result = session.execute(delete(Document).where(Document.id == id))
        return result.rowcount or 0

    def list_by_workspace(self, session: Session, workspace_id: str) -> list[DocumentDTO]:
        rows = session.execute(
            select(Document)
            .where(Document.workspace_id == workspace_id)
            .order_by(Document.updated_at.desc())
        ).scalars().all()
        return [DocumentDTO.model_validate(r) for r in rows]

    def list_searchable(self, session: Session, workspace_id: str) -> list[DocumentDTO]:
        rows = session.execute(
            select(Document)
            .where(
                Document.workspace_id == workspace_id,
                Document.published_version_id.is_not(None),
                Document.is_searchable.is_(True),
            )
            .order_by(Document.updated_at.desc())
        ).scalars().all()
        return [DocumentDTO.model_validate(r) for r in rows]

    def list_published_by_ids(
        self, session: Session, ids: list[str], workspace_id: str
    ) -> list[DocumentDTO]:
        if not ids:
            return []
        rows = session.execute(
            select(Document).where(
                Document.id.in_(ids),
                Document.workspace_id == workspace_id,
                Document.published_version_id.is_not(None),
            )
        ).scalars().all()
        return [DocumentDTO.model_validate(r) for r in rows]

"""DocumentVersion repository. Content is insert-only; only the sidecar is updated."""
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from docengine.db.models.document import DocumentVersion
from docengine.db.schemas.document import VersionDTO
from docengine.db.utils import json_serialize


class VersionRepo:
    def insert(
        self,
        session: Session,
        document_id: str,
        version_number: int,
        content: str,
        created_by_user_id: str,
        *,
        punchlist: Any = None,
        goal: str | None = None,
        metadata: dict[str, Any] | None = None,
        kind: str = "text",
    ) -> VersionDTO:
        v = DocumentVersion(
            document_id=document_id,
            version_number=version_number,
            content=content,
            created_by_user_id=created_by_user_id,
            punchlist_json=json_serialize(punchlist),
            goal=goal,
            metadata_json=json_serialize(metadata),
            kind=kind,
        )
        session.add(v)
        session.flush()
        return VersionDTO.model_validate(v)

    def get(self, session: Session, id: str) -> VersionDTO | None:
        row = session.get(DocumentVersion, id)
        return VersionDTO.model_validate(row) if row else None

    def get_latest(self, session: Session, document_id: str) -> VersionDTO | None:
        row = session.execute(
            select(DocumentVersion)
            .where(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.version_number.desc())
            .limit(1)
        ).scalar_one_or_none()
        return VersionDTO.model_validate(row) if row else None

    def list_for_document(self, session: Session, document_id: str) -> list[VersionDTO]:
        rows = session.execute(
            select(DocumentVersion)
            .where(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.version_number.desc())
        ).scalars().all()
        return [VersionDTO.model_validate(r) for r in rows]

    def list_ids_for_document(self, session: Session, document_id: str) -> list[str]:
        return list(
            session.execute(
                select(DocumentVersion.id).where(DocumentVersion.document_id == document_id)
            ).scalars().all()
        )

    def set_punchlist(self, session: Session, id: str, punchlist: Any) -> VersionDTO | None:
        row = session.get(DocumentVersion, id)
        if not row:
            return None
        row.punchlist_json = json_serialize(punchlist)
        session.flush()
        return VersionDTO.model_validate(row)

    def set_goal(self, session: Session, id: str, goal: str | None) -> VersionDTO | None:
        row = session.get(DocumentVersion, id)
        if not row:
            return None
        row.goal = goal
        session.flush()
        return VersionDTO.model_validate(row)

    def delete_for_document(self, session: Session, document_id: str) -> int:
        result = session.execute(
            delete(DocumentVersion).where(DocumentVersion.document_id == document_id)
        )
        return result.rowcount or 0

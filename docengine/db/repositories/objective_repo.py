"""Objective repository."""
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from docengine.db.models.objective import Objective
from docengine.db.schemas.objective import ObjectiveDTO


class ObjectiveRepo:
    def create(self, session: Session, workspace_id: str, title: str) -> ObjectiveDTO:
        o = Objective(workspace_id=workspace_id, title=title)
        session.add(o)
        session.flush()
        return ObjectiveDTO.model_validate(o)

    def get(self, session: Session, id: str) -> ObjectiveDTO | None:
        row = session.get(Objective, id)
        return ObjectiveDTO.model_validate(row) if row else None

    def set_document(self, session: Session, objective_id: str, document_id: str | None) -> bool:
        row = session.get(Objective, objective_id)
        if not row:
            return False
        row.document_id = document_id
        session.flush()
        return True

    def clear_document_refs(self, session: Session, document_id: str) -> int:
        """Null document_id on every objective pointing at document_id."""
        result = session.execute(
            update(Objective)
            .where(Objective.document_id == document_id)
            .values(document_id=None)
        )
        return result.rowcount or 0

    def list_by_workspace(self, session: Session, workspace_id: str) -> list[ObjectiveDTO]:
        rows = session.execute(
            select(Objective).where(Objective.workspace_id == workspace_id)
        ).scalars().all()
        return [ObjectiveDTO.model_validate(r) for r in rows]

    def list_by_documents(self, session: Session, document_ids: list[str]) -> list[ObjectiveDTO]:
        if not document_ids:
            return []
        rows = session.execute(
            select(Objective).where(Objective.document_id.in_(document_ids))
        ).scalars().all()
        return [ObjectiveDTO.model_validate(r) for r in rows]

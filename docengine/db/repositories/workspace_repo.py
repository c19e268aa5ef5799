"""Workspace repository."""
from sqlalchemy import select
from sqlalchemy.orm import Session

from docengine.db.base import utc_now
from docengine.db.models.workspace import Workspace
from docengine.db.schemas.workspace import WorkspaceDTO


class WorkspaceRepo:
    def create(self, session: Session, name: str, user_id: str) -> WorkspaceDTO:
        w = Workspace(name=name, user_id=user_id)
        session.add(w)
        session.flush()
        return WorkspaceDTO.model_validate(w)

    def get(self, session: Session, id: str) -> WorkspaceDTO | None:
        row = session.get(Workspace, id)
        return WorkspaceDTO.model_validate(row) if row else None

    def get_active_owned(self, session: Session, id: str, user_id: str) -> WorkspaceDTO | None:
        """Workspace owned by user_id and not soft-deleted, else None."""
        row = session.execute(
            select(Workspace).where(
                Workspace.id == id,
                Workspace.user_id == user_id,
                Workspace.deleted_at.is_(None),
            )
        ).scalar_one_or_none()
        return WorkspaceDTO.model_validate(row) if row else None

    def soft_delete(self, session: Session, id: str) -> bool:
        row = session.get(Workspace, id)
        if not row:
            return False
        row.deleted_at = utc_now()
        session.flush()
        return True

"""Chat repository."""
from sqlalchemy import update
from sqlalchemy.orm import Session

from docengine.db.models.chat import Chat
from docengine.db.schemas.chat import ChatDTO


class ChatRepo:
    def create(
        self,
        session: Session,
        workspace_id: str,
        user_id: str,
        objective_id: str | None = None,
        title: str = "",
    ) -> ChatDTO:
        c = Chat(workspace_id=workspace_id, user_id=user_id, objective_id=objective_id, title=title)
        session.add(c)
        session.flush()
        return ChatDTO.model_validate(c)

    def get(self, session: Session, id: str) -> ChatDTO | None:
        row = session.get(Chat, id)
        return ChatDTO.model_validate(row) if row else None

    def bind_version(self, session: Session, chat_id: str, version_id: str) -> bool:
        """Point the chat at version_id. Raises IntegrityError if another chat owns it."""
        row = session.get(Chat, chat_id)
        if not row:
            return False
        row.document_version_id = version_id
        session.flush()
        return True

    def unbind_versions(self, session: Session, version_ids: list[str]) -> int:
        if not version_ids:
            return 0
        result = session.execute(
            update(Chat)
            .where(Chat.document_version_id.in_(version_ids))
            .values(document_version_id=None)
        )
        return result.rowcount or 0

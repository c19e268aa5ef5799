"""Chat -> version binding: each chat gets exactly one fresh version, minted on first use."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from docengine.db.repositories import ChatRepo, VersionRepo
from docengine.db.schemas import ChatBinding, VersionDTO
from docengine.db.session import session_scope
from docengine.documents.errors import NotFoundError, store_boundary
from docengine.documents.invalidation import ViewInvalidatorPort, notify
from docengine.documents.lifecycle import DocumentLifecycle
from docengine.documents.settings import DocumentSettings
from docengine.documents.telemetry import log_document_event
from docengine.documents.version_store import VersionStore

logger = logging.getLogger(__name__)


class SessionBinding:
    def __init__(
        self,
        store: VersionStore | None = None,
        lifecycle: DocumentLifecycle | None = None,
        invalidator: ViewInvalidatorPort | None = None,
        settings: DocumentSettings | None = None,
    ) -> None:
        self._settings = settings or DocumentSettings()
        self._store = store or VersionStore(self._settings)
        self._lifecycle = lifecycle or DocumentLifecycle(self._store, invalidator)
        self._invalidator = invalidator
        self._chats = ChatRepo()
        self._versions = VersionRepo()

    def initialize_version_for_chat(
        self,
        chat_id: str,
        owner_id: str,
        author_id: str,
        workspace_id: str,
        title: str | None = None,
    ) -> ChatBinding:
        """Mint the chat's version (creating the owner's document if needed) and bind it.

        Version creation and binding share one transaction. A chat that is
        already bound keeps its version; the existing binding is returned.
        """
        binding, minted = self._store.transact(
            "initialize_version_for_chat",
            lambda session: self._bind(session, chat_id, owner_id, author_id, workspace_id, title),
        )
        if minted:
            log_document_event(
                "chat_bound",
                chat_id=chat_id,
                version_id=binding.version_id,
                document_id=binding.document_id,
                is_first_version=binding.is_first_version,
            )
            notify(self._invalidator, workspace_id, owner_id)
        return binding

    def _bind(
        self,
        session: Session,
        chat_id: str,
        owner_id: str,
        author_id: str,
        workspace_id: str,
        title: str | None,
    ) -> tuple[ChatBinding, bool]:
        objective = self._lifecycle.owner_in_workspace(session, owner_id, workspace_id)
        chat = self._chats.get(session, chat_id)
        if chat is None or chat.workspace_id != workspace_id:
            raise NotFoundError(f"Chat not found: {chat_id}")

        if chat.document_version_id is not None:
            bound = self._versions.get(session, chat.document_version_id)
            logger.warning(
                "chat_already_bound",
                extra={"chat_id": chat_id, "version_id": bound.id},
            )
            existing = ChatBinding(
                version_id=bound.id,
                document_id=bound.document_id,
                is_first_version=bound.version_number == 1,
                owner_id=owner_id,
            )
            return existing, False

        if objective.document_id is None:
            _, version = self._lifecycle.create_in_session(
                session,
                owner_id,
                workspace_id,
                author_id,
                title or objective.title or self._settings.default_document_title,
                "",
            )
            is_first = True
        else:
            version = self._store.append(session, objective.document_id, author_id, "")
            is_first = False
        # UNIQUE(document_version_id) makes a second binding of this version fail here.
        self._chats.bind_version(session, chat_id, version.id)
        binding = ChatBinding(
            version_id=version.id,
            document_id=version.document_id,
            is_first_version=is_first,
            owner_id=owner_id,
        )
        return binding, True

    def get_version_by_chat_id(self, chat_id: str) -> VersionDTO | None:
        with store_boundary("get_version_by_chat_id"), session_scope() as session:
            chat = self._chats.get(session, chat_id)
            if chat is None or chat.document_version_id is None:
                return None
            return self._versions.get(session, chat.document_version_id)

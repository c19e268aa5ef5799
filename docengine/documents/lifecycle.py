"""Document lifecycle: atomic create (document + first version + owner link) and cascading delete."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from docengine.db.repositories import (
    ChatRepo,
    DocumentRepo,
    ObjectiveRepo,
    VersionRepo,
    WorkspaceRepo,
)
from docengine.db.schemas import (
    DocumentDTO,
    DocumentWithVersions,
    ObjectiveDTO,
    VersionDTO,
    WorkspaceDocumentEntry,
)
from docengine.db.session import session_scope
from docengine.documents.errors import InvalidStateError, NotFoundError, store_boundary
from docengine.documents.invalidation import ViewInvalidatorPort, notify
from docengine.documents.telemetry import log_document_event
from docengine.documents.version_store import VersionStore

logger = logging.getLogger(__name__)


class DocumentLifecycle:
    def __init__(
        self,
        store: VersionStore | None = None,
        invalidator: ViewInvalidatorPort | None = None,
    ) -> None:
        self._store = store or VersionStore()
        self._invalidator = invalidator
        self._documents = DocumentRepo()
        self._versions = VersionRepo()
        self._objectives = ObjectiveRepo()
        self._chats = ChatRepo()
        self._workspaces = WorkspaceRepo()

    def owner_in_workspace(self, session: Session, owner_id: str, workspace_id: str) -> ObjectiveDTO:
        objective = self._objectives.get(session, owner_id)
        if objective is None or objective.workspace_id != workspace_id:
            raise NotFoundError(f"Objective not found: {owner_id}")
        return objective

    def create_in_session(
        self,
        session: Session,
        owner_id: str,
        workspace_id: str,
        author_id: str,
        title: str,
        content: str,
        metadata: dict[str, Any] | None = None,
        document_type: str | None = None,
    ) -> tuple[DocumentDTO, VersionDTO]:
        """Document, version 1 and owner link inside the caller's transaction."""
        objective = self.owner_in_workspace(session, owner_id, workspace_id)
        if objective.document_id is not None:
            raise InvalidStateError(
                f"Objective {owner_id} already has document {objective.document_id}"
            )
        document = self._documents.create(
            session,
            workspace_id=workspace_id,
            title=title,
            created_by_user_id=author_id,
            document_type=document_type,
        )
        version = self._store.append(session, document.id, author_id, content, metadata=metadata)
        self._objectives.set_document(session, owner_id, document.id)
        # Re-read so updated_at reflects the touch from append().
        return self._documents.get(session, document.id), version

    def create_document(
        self,
        owner_id: str,
        workspace_id: str,
        author_id: str,
        title: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[DocumentDTO, VersionDTO]:
        """All three writes commit together or not at all."""
        document, version = self._store.transact(
            "create_document",
            lambda session: self.create_in_session(
                session, owner_id, workspace_id, author_id, title, content, metadata
            ),
        )
        log_document_event(
            "document_created",
            document_id=document.id,
            version_id=version.id,
            owner_id=owner_id,
            workspace_id=workspace_id,
        )
        notify(self._invalidator, workspace_id, owner_id)
        return document, version

    def delete_document(self, document_id: str, author_id: str) -> None:
        """Delete versions, unlink owners and chats, then the document, in one transaction."""
        with store_boundary("delete_document"), session_scope() as session:
            document = self._documents.get_owned(session, document_id, author_id)
            if document is None:
                raise NotFoundError(f"Document not found: {document_id}")
            owners = self._objectives.list_by_documents(session, [document_id])
            version_ids = self._versions.list_ids_for_document(session, document_id)
            unbound = self._chats.unbind_versions(session, version_ids)
            deleted = self._versions.delete_for_document(session, document_id)
            self._objectives.clear_document_refs(session, document_id)
            self._documents.delete(session, document_id)
        log_document_event(
            "document_deleted",
            document_id=document_id,
            workspace_id=document.workspace_id,
            versions_deleted=deleted,
            chats_unbound=unbound,
        )
        notify(self._invalidator, document.workspace_id)
        for owner in owners:
            notify(self._invalidator, document.workspace_id, owner.id)

    def get_document(self, document_id: str) -> DocumentDTO | None:
        with store_boundary("get_document"), session_scope() as session:
            return self._documents.get(session, document_id)

    def get_document_by_owner(self, owner_id: str) -> DocumentWithVersions | None:
        with store_boundary("get_document_by_owner"), session_scope() as session:
            objective = self._objectives.get(session, owner_id)
            if objective is None or objective.document_id is None:
                return None
            document = self._documents.get(session, objective.document_id)
            if document is None:
                return None
            versions = self._versions.list_for_document(session, document.id)
        return DocumentWithVersions(
            document=document,
            versions=versions,
            latest=versions[0] if versions else None,
        )

    def list_workspace_documents(
        self,
        workspace_id: str,
        user_id: str,
        owner_id: str | None = None,
    ) -> list[WorkspaceDocumentEntry]:
        """Documents in a workspace the user owns, most recently updated first.

        With owner_id, only that objective's document. Empty when the workspace
        is not the user's or has been deleted.
        """
        with store_boundary("list_workspace_documents"), session_scope() as session:
            if self._workspaces.get_active_owned(session, workspace_id, user_id) is None:
                return []
            objectives = self._objectives.list_by_workspace(session, workspace_id)
            if owner_id is not None:
                objectives = [o for o in objectives if o.id == owner_id]
            by_document = {o.document_id: o for o in objectives if o.document_id is not None}
            if owner_id is not None and not by_document:
                return []
            entries: list[WorkspaceDocumentEntry] = []
            for document in self._documents.list_by_workspace(session, workspace_id):
                if owner_id is not None and document.id not in by_document:
                    continue
                entries.append(
                    WorkspaceDocumentEntry(
                        document=document,
                        latest_version=self._versions.get_latest(session, document.id),
                        objective=by_document.get(document.id),
                    )
                )
        return entries

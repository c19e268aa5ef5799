"""
Publication state machine over a document envelope.
Two independent slots (draft, published) plus a searchable flag that only
means something while a version is published. Every invalid transition
raises InvalidStateError; nothing is a silent no-op.
"""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from docengine.db.repositories import DocumentRepo, VersionRepo
from docengine.db.schemas import DocumentDTO, EnvelopeView, VersionDTO
from docengine.db.session import session_scope
from docengine.documents.errors import InvalidStateError, NotFoundError, store_boundary
from docengine.documents.invalidation import ViewInvalidatorPort, notify
from docengine.documents.telemetry import log_document_event
from docengine.documents.version_store import VersionStore

logger = logging.getLogger(__name__)


class PublicationService:
    def __init__(
        self,
        store: VersionStore | None = None,
        invalidator: ViewInvalidatorPort | None = None,
    ) -> None:
        self._store = store or VersionStore()
        self._invalidator = invalidator
        self._documents = DocumentRepo()
        self._versions = VersionRepo()

    def _envelope(self, session: Session, envelope_id: str) -> DocumentDTO:
        envelope = self._documents.get(session, envelope_id)
        if envelope is None:
            raise NotFoundError(f"Envelope not found: {envelope_id}")
        return envelope

    def _write_slots(
        self,
        session: Session,
        envelope: DocumentDTO,
        *,
        draft: str | None,
        published: str | None,
        searchable: bool,
    ) -> DocumentDTO:
        return self._documents.set_slots(
            session,
            envelope.id,
            draft_version_id=draft,
            published_version_id=published,
            is_searchable=searchable and published is not None,
        )

    def _changed(self, event: str, envelope: DocumentDTO, **fields: object) -> None:
        log_document_event(
            event,
            document_id=envelope.id,
            draft_version_id=envelope.draft_version_id,
            published_version_id=envelope.published_version_id,
            is_searchable=envelope.is_searchable,
            **fields,
        )
        notify(self._invalidator, envelope.workspace_id)

    def create_envelope(
        self,
        workspace_id: str,
        author_id: str,
        title: str,
        content: str,
        document_type: str | None = None,
    ) -> EnvelopeView:
        """New envelope whose first version is the draft."""

        def run(session: Session) -> EnvelopeView:
            envelope = self._documents.create(
                session,
                workspace_id=workspace_id,
                title=title,
                created_by_user_id=author_id,
                document_type=document_type,
            )
            version = self._store.append(session, envelope.id, author_id, content)
            envelope = self._write_slots(session, envelope, draft=version.id, published=None, searchable=False)
            return EnvelopeView(envelope=envelope, draft=version, published=None)

        view = self._store.transact("create_envelope", run)
        self._changed("envelope_created", view.envelope)
        return view

    def save_draft(self, envelope_id: str, author_id: str, content: str) -> VersionDTO:
        """Append a version and make it the draft. The published slot is untouched."""

        def run(session: Session) -> tuple[DocumentDTO, VersionDTO]:
            envelope = self._envelope(session, envelope_id)
            version = self._store.append(session, envelope_id, author_id, content)
            envelope = self._write_slots(
                session,
                envelope,
                draft=version.id,
                published=envelope.published_version_id,
                searchable=envelope.is_searchable,
            )
            return envelope, version

        envelope, version = self._store.transact("save_draft", run)
        self._changed("draft_saved", envelope, version_id=version.id)
        return version

    def publish(self, envelope_id: str, version_id: str, make_searchable: bool = False) -> DocumentDTO:
        """Copy the draft's id into the published slot. The draft slot keeps its value."""

        def run(session: Session) -> DocumentDTO:
            envelope = self._envelope(session, envelope_id)
            if envelope.draft_version_id is None or envelope.draft_version_id != version_id:
                raise InvalidStateError(f"Version {version_id} is not the current draft of {envelope_id}")
            return self._write_slots(
                session,
                envelope,
                draft=envelope.draft_version_id,
                published=version_id,
                searchable=make_searchable,
            )

        envelope = self._store.transact("publish", run)
        self._changed("envelope_published", envelope)
        return envelope

    def unpublish(self, envelope_id: str) -> DocumentDTO:
        def run(session: Session) -> DocumentDTO:
            envelope = self._envelope(session, envelope_id)
            if envelope.published_version_id is None:
                raise InvalidStateError(f"Envelope {envelope_id} is not published")
            return self._write_slots(
                session, envelope, draft=envelope.draft_version_id, published=None, searchable=False
            )

        envelope = self._store.transact("unpublish", run)
        self._changed("envelope_unpublished", envelope)
        return envelope

    def toggle_searchable(self, envelope_id: str) -> DocumentDTO:
        def run(session: Session) -> DocumentDTO:
            envelope = self._envelope(session, envelope_id)
            if envelope.published_version_id is None:
                raise InvalidStateError(f"Envelope {envelope_id} has no published version")
            return self._write_slots(
                session,
                envelope,
                draft=envelope.draft_version_id,
                published=envelope.published_version_id,
                searchable=not envelope.is_searchable,
            )

        envelope = self._store.transact("toggle_searchable", run)
        self._changed("searchable_toggled", envelope)
        return envelope

    def create_standalone_draft(self, envelope_id: str, author_id: str) -> VersionDTO:
        """Existing draft, or a fresh clone of the published version set as the draft."""

        def run(session: Session) -> tuple[DocumentDTO, VersionDTO, bool]:
            envelope = self._envelope(session, envelope_id)
            if envelope.draft_version_id is not None:
                draft = self._versions.get(session, envelope.draft_version_id)
                return envelope, draft, False
            if envelope.published_version_id is None:
                raise InvalidStateError(f"Envelope {envelope_id} has neither draft nor published version")
            published = self._versions.get(session, envelope.published_version_id)
            clone = self._store.append(
                session,
                envelope_id,
                author_id,
                published.content,
                punchlist=published.punchlist,
                goal=published.goal,
                metadata={"cloned_from": published.id},
                kind=published.kind,
            )
            envelope = self._write_slots(
                session,
                envelope,
                draft=clone.id,
                published=envelope.published_version_id,
                searchable=envelope.is_searchable,
            )
            return envelope, clone, True

        envelope, draft, cloned = self._store.transact("create_standalone_draft", run)
        if cloned:
            self._changed("standalone_draft_created", envelope, version_id=draft.id)
        return draft

    def discard_draft(self, envelope_id: str) -> DocumentDTO:
        """Clear the draft slot. The version row stays in history."""

        def run(session: Session) -> DocumentDTO:
            envelope = self._envelope(session, envelope_id)
            if envelope.draft_version_id is None:
                raise InvalidStateError(f"Envelope {envelope_id} has no draft")
            return self._write_slots(
                session,
                envelope,
                draft=None,
                published=envelope.published_version_id,
                searchable=envelope.is_searchable,
            )

        envelope = self._store.transact("discard_draft", run)
        self._changed("draft_discarded", envelope)
        return envelope

    def _view(self, session: Session, envelope: DocumentDTO) -> EnvelopeView:
        draft = self._versions.get(session, envelope.draft_version_id) if envelope.draft_version_id else None
        published = (
            self._versions.get(session, envelope.published_version_id)
            if envelope.published_version_id
            else None
        )
        return EnvelopeView(envelope=envelope, draft=draft, published=published)

    def get_envelope(self, envelope_id: str) -> EnvelopeView | None:
        with store_boundary("get_envelope"), session_scope() as session:
            envelope = self._documents.get(session, envelope_id)
            return self._view(session, envelope) if envelope else None

    def list_searchable(self, workspace_id: str) -> list[EnvelopeView]:
        """Published and searchable envelopes: what the search index may see."""
        with store_boundary("list_searchable"), session_scope() as session:
            return [self._view(session, e) for e in self._documents.list_searchable(session, workspace_id)]

    def get_published_by_ids(self, ids: list[str], workspace_id: str) -> list[EnvelopeView]:
        """Published envelopes among ids. Drafts are never exposed here."""
        with store_boundary("get_published_by_ids"), session_scope() as session:
            views = [
                self._view(session, e)
                for e in self._documents.list_published_by_ids(session, ids, workspace_id)
            ]
        return [v.model_copy(update={"draft": None}) for v in views]

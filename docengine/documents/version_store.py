"""Append-only version store with carried-forward sidecar (punchlist, goal)."""
from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from docengine.db.repositories import DocumentRepo, VersionRepo
from docengine.db.schemas import VersionDTO
from docengine.db.session import session_scope
from docengine.documents.errors import NotFoundError, PersistenceError, ValidationError, store_boundary
from docengine.documents.settings import DocumentSettings
from docengine.documents.telemetry import log_document_event

logger = logging.getLogger(__name__)

T = TypeVar("T")

_VERSION_NUMBER_CONSTRAINT = "uq_document_versions_document_number"
_SQLITE_VERSION_NUMBER_MSG = "document_versions.document_id, document_versions.version_number"


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Sidecar argument not supplied: inherit from the latest version. None clears it.
UNSET: Any = _Unset()


def _is_version_number_clash(e: IntegrityError) -> bool:
    msg = str(e.orig) if e.orig is not None else str(e)
    return _VERSION_NUMBER_CONSTRAINT in msg or _SQLITE_VERSION_NUMBER_MSG in msg


class VersionStore:
    def __init__(self, settings: DocumentSettings | None = None) -> None:
        self._settings = settings or DocumentSettings()
        self._documents = DocumentRepo()
        self._versions = VersionRepo()

    def append(
        self,
        session: Session,
        document_id: str,
        author_id: str,
        content: str,
        *,
        punchlist: Any = UNSET,
        goal: Any = UNSET,
        metadata: dict[str, Any] | None = None,
        kind: str = "text",
    ) -> VersionDTO:
        """Insert the next version inside the caller's transaction.

        The version number is read and written in the same transaction; the
        UNIQUE(document_id, version_number) constraint catches concurrent writers.
        """
        if self._documents.get(session, document_id) is None:
            raise NotFoundError(f"Document not found: {document_id}")
        latest = self._versions.get_latest(session, document_id)
        if punchlist is UNSET:
            punchlist = latest.punchlist if latest else None
        if goal is UNSET:
            goal = latest.goal if latest else None
        self._check_goal(goal)
        number = latest.version_number + 1 if latest else 1
        version = self._versions.insert(
            session,
            document_id,
            number,
            content,
            author_id,
            punchlist=punchlist,
            goal=goal,
            metadata=metadata,
            kind=kind,
        )
        self._documents.touch(session, document_id)
        return version

    def transact(self, operation: str, fn: Callable[[Session], T]) -> T:
        """Run fn in a fresh transaction, retrying when it loses a version-number race.

        Anything else from the store surfaces as PersistenceError after rollback.
        """
        attempts = self._settings.version_retry_attempts
        for attempt in range(1, attempts + 1):
            try:
                with session_scope() as session:
                    return fn(session)
            except IntegrityError as e:
                if not _is_version_number_clash(e) or attempt == attempts:
                    raise PersistenceError(f"{operation} failed: {type(e).__name__}", operation=operation) from e
                logger.warning("version_number_conflict", extra={"operation": operation, "attempt": attempt})
            except SQLAlchemyError as e:
                raise PersistenceError(f"{operation} failed: {type(e).__name__}", operation=operation) from e
        raise PersistenceError(f"{operation} exhausted retries", operation=operation)

    def create_version(
        self,
        document_id: str,
        author_id: str,
        content: str,
        *,
        punchlist: Any = UNSET,
        goal: Any = UNSET,
        metadata: dict[str, Any] | None = None,
        kind: str = "text",
    ) -> VersionDTO:
        version = self.transact(
            "create_version",
            lambda session: self.append(
                session,
                document_id,
                author_id,
                content,
                punchlist=punchlist,
                goal=goal,
                metadata=metadata,
                kind=kind,
            ),
        )
        log_document_event(
            "version_created",
            document_id=document_id,
            version_id=version.id,
            version_number=version.version_number,
        )
        return version

    def get_latest_version(self, document_id: str) -> VersionDTO | None:
        with store_boundary("get_latest_version"), session_scope() as session:
            return self._versions.get_latest(session, document_id)

    def list_versions(self, document_id: str) -> list[VersionDTO]:
        """All versions, newest first."""
        with store_boundary("list_versions"), session_scope() as session:
            return self._versions.list_for_document(session, document_id)

    def get_version(self, version_id: str) -> VersionDTO | None:
        with store_boundary("get_version"), session_scope() as session:
            return self._versions.get(session, version_id)

    def update_punchlist(self, version_id: str, punchlist: Any) -> VersionDTO:
        """Replace the sidecar of one version in place. Content is untouched."""
        with store_boundary("update_punchlist"), session_scope() as session:
            version = self._versions.set_punchlist(session, version_id, punchlist)
            if version is None:
                raise NotFoundError(f"Version not found: {version_id}")
        log_document_event("punchlist_updated", version_id=version_id)
        return version

    def update_goal(self, version_id: str, author_id: str, goal: str | None) -> VersionDTO:
        """Set the goal on one version. The caller must own the document's workspace."""
        self._check_goal(goal)
        with store_boundary("update_goal"), session_scope() as session:
            current = self._versions.get(session, version_id)
            if current is None or self._documents.get_owned(session, current.document_id, author_id) is None:
                raise NotFoundError(f"Version not found: {version_id}")
            version = self._versions.set_goal(session, version_id, goal)
        log_document_event("goal_updated", version_id=version_id, document_id=version.document_id)
        return version

    def _check_goal(self, goal: str | None) -> None:
        if goal is not None and len(goal) > self._settings.goal_max_length:
            raise ValidationError(
                f"Goal exceeds {self._settings.goal_max_length} characters ({len(goal)})"
            )

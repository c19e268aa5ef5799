"""Document lifecycle: atomic create, cascading delete, owner-scoped listing."""
import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from docengine.db.models import Document, DocumentVersion
from docengine.db.repositories import ObjectiveRepo, WorkspaceRepo
from docengine.db.session import session_scope
from docengine.documents import (
    DocumentLifecycle,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    VersionStore,
)
from fakes import OTHER_USER, USER, RecordingInvalidator


@pytest.fixture
def invalidator():
    return RecordingInvalidator()


@pytest.fixture
def lifecycle(settings, invalidator):
    return DocumentLifecycle(VersionStore(settings), invalidator)


def _count(model) -> int:
    with session_scope() as s:
        return s.execute(select(func.count()).select_from(model)).scalar_one()


def test_create_links_owner_and_first_version(lifecycle, workspace, objective, invalidator):
    document, version = lifecycle.create_document(objective.id, workspace.id, USER, "Plan", "hello")
    assert version.version_number == 1
    assert version.content == "hello"
    assert version.document_id == document.id
    with session_scope() as s:
        assert ObjectiveRepo().get(s, objective.id).document_id == document.id
    assert invalidator.calls == [(workspace.id, objective.id)]

    loaded = lifecycle.get_document_by_owner(objective.id)
    assert loaded.document.id == document.id
    assert loaded.latest.id == version.id


def test_second_create_for_same_owner_is_rejected(lifecycle, workspace, objective):
    lifecycle.create_document(objective.id, workspace.id, USER, "Plan", "a")
    with pytest.raises(InvalidStateError):
        lifecycle.create_document(objective.id, workspace.id, USER, "Plan", "b")
    assert _count(Document) == 1


def test_owner_from_another_workspace_is_not_found(lifecycle, objective):
    with session_scope() as s:
        other = WorkspaceRepo().create(s, "Other", USER)
    with pytest.raises(NotFoundError):
        lifecycle.create_document(objective.id, other.id, USER, "Plan", "a")
    assert _count(Document) == 0


def test_create_is_atomic(lifecycle, workspace, objective, monkeypatch):
    def broken(session, objective_id, document_id):
        raise OperationalError("UPDATE objectives", {}, Exception("disk I/O error"))

    monkeypatch.setattr(lifecycle._objectives, "set_document", broken)
    with pytest.raises(PersistenceError):
        lifecycle.create_document(objective.id, workspace.id, USER, "Plan", "a")
    assert _count(Document) == 0
    assert _count(DocumentVersion) == 0
    with session_scope() as s:
        assert ObjectiveRepo().get(s, objective.id).document_id is None


def test_delete_removes_versions_and_owner_link(lifecycle, workspace, objective, invalidator):
    document, _ = lifecycle.create_document(objective.id, workspace.id, USER, "Plan", "a")
    lifecycle._store.create_version(document.id, USER, "b")
    invalidator.calls.clear()

    lifecycle.delete_document(document.id, USER)

    assert lifecycle.get_document(document.id) is None
    assert _count(DocumentVersion) == 0
    with session_scope() as s:
        assert ObjectiveRepo().get(s, objective.id).document_id is None
    assert (workspace.id, None) in invalidator.calls
    assert (workspace.id, objective.id) in invalidator.calls


def test_delete_by_non_owner_is_not_found(lifecycle, workspace, objective):
    document, _ = lifecycle.create_document(objective.id, workspace.id, USER, "Plan", "a")
    with pytest.raises(NotFoundError):
        lifecycle.delete_document(document.id, OTHER_USER)
    assert lifecycle.get_document(document.id) is not None


def test_delete_in_soft_deleted_workspace_is_not_found(lifecycle, workspace, objective):
    document, _ = lifecycle.create_document(objective.id, workspace.id, USER, "Plan", "a")
    with session_scope() as s:
        WorkspaceRepo().soft_delete(s, workspace.id)
    with pytest.raises(NotFoundError):
        lifecycle.delete_document(document.id, USER)


def test_list_workspace_documents(lifecycle, workspace, objective):
    with session_scope() as s:
        second = ObjectiveRepo().create(s, workspace.id, "Hire")
    d1, _ = lifecycle.create_document(objective.id, workspace.id, USER, "Plan", "a")
    d2, v2 = lifecycle.create_document(second.id, workspace.id, USER, "Hiring", "b")

    entries = lifecycle.list_workspace_documents(workspace.id, USER)
    assert {e.document.id for e in entries} == {d1.id, d2.id}
    by_id = {e.document.id: e for e in entries}
    assert by_id[d2.id].latest_version.id == v2.id
    assert by_id[d2.id].objective.id == second.id

    only = lifecycle.list_workspace_documents(workspace.id, USER, owner_id=objective.id)
    assert [e.document.id for e in only] == [d1.id]

    assert lifecycle.list_workspace_documents(workspace.id, OTHER_USER) == []


def test_owner_without_document(lifecycle, objective, workspace):
    assert lifecycle.get_document_by_owner(objective.id) is None
    assert lifecycle.list_workspace_documents(workspace.id, USER, owner_id=objective.id) == []


def test_invalidator_failure_does_not_fail_create(settings, workspace, objective):
    lifecycle = DocumentLifecycle(VersionStore(settings), RecordingInvalidator(fail=True))
    document, _ = lifecycle.create_document(objective.id, workspace.id, USER, "Plan", "a")
    assert lifecycle.get_document(document.id) is not None

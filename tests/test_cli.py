"""CLI commands against a temp database configured through DB_DB_URL."""
import pytest

from docengine.cli import main
from docengine.documents import PublicationService
from fakes import USER


@pytest.fixture
def cli_db(monkeypatch, temp_db_url, db):
    monkeypatch.setenv("DB_DB_URL", temp_db_url)


def test_init_db_prints_table_counts(cli_db, capsys):
    assert main(["init-db"]) == 0
    out = capsys.readouterr().out
    assert "document_versions: 0" in out
    assert "chats: 0" in out


def test_publish_history_unpublish(cli_db, workspace, capsys):
    view = PublicationService().create_envelope(workspace.id, USER, "Guide", "hello")
    env_id, version_id = view.envelope.id, view.draft.id

    assert main(["publish", env_id, version_id, "--searchable"]) == 0
    assert f"published={version_id} searchable=True" in capsys.readouterr().out

    assert main(["history", env_id]) == 0
    assert f"v1  {version_id}" in capsys.readouterr().out

    assert main(["unpublish", env_id]) == 0
    assert main(["unpublish", env_id]) == 1
    assert "Error [INVALID_STATE]" in capsys.readouterr().err


def test_history_of_unknown_document(cli_db, capsys):
    assert main(["history", "missing"]) == 1
    assert "no versions" in capsys.readouterr().err

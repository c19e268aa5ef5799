"""Prompt composition."""
from datetime import date

from docengine.documents.prompts import (
    compose_generation_prompt,
    compose_revision_system,
    format_parameters,
    format_sources,
)
from docengine.documents.sources import SourceDocument

A = SourceDocument(id="a", title="Notes", content="alpha")
B = SourceDocument(id="b", title="Deck", content="beta")


def test_format_sources_blocks():
    assert format_sources([A, B]) == "--- Notes ---\nalpha\n\n--- Deck ---\nbeta"


def test_format_parameters_defaults_and_extras():
    text = format_parameters(
        "Kickoff",
        {"participants": "Ana, Bo", "email_recipients": ["x@y.z"], "tone": "formal", "empty": ""},
        today=date(2026, 1, 2),
    )
    assert text.splitlines() == [
        "Title: Kickoff",
        "Date: 2026-01-02",
        "Participants: Ana, Bo",
        "Email Recipients: x@y.z",
        "Tone: formal",
    ]


def test_format_parameters_without_participants():
    text = format_parameters("T", {"meeting_date": "2025-12-01"})
    assert "Date: 2025-12-01" in text
    assert "Participants: See transcript" in text
    assert "Email Recipients" not in text


def test_prompt_with_primary_source():
    prompt = compose_generation_prompt("T", [A, B], {}, primary_source_id="b", today=date(2026, 1, 1))
    assert "Source (analyse this):\n--- Deck ---\nbeta" in prompt
    assert "Reference documents:\n--- Notes ---\nalpha" in prompt
    assert "Sources:" not in prompt


def test_prompt_with_sources_and_transcript():
    prompt = compose_generation_prompt("T", [A], {}, transcript="hi there", today=date(2026, 1, 1))
    assert prompt.startswith("Title: T\nDate: 2026-01-01")
    assert prompt.index("Sources:\n--- Notes ---") < prompt.index("Transcript:\nhi there")


def test_revision_system_embeds_current_content():
    assert compose_revision_system("Be brief.", "old") == "Be brief.\n\nCurrent content:\nold"

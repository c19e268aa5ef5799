"""Prompt composition for generation and revision. Pure functions, no I/O."""
from __future__ import annotations

from datetime import date
from typing import Any, Sequence

from docengine.documents.sources import SourceDocument

# Keys rendered by the fixed header; anything else is listed after them.
_HEADER_KEYS = ("meeting_date", "participants", "email_recipients")


def format_sources(sources: Sequence[SourceDocument]) -> str:
    """'--- title ---' delimited blocks joined by blank lines."""
    return "\n\n".join(f"--- {s.title} ---\n{s.content}" for s in sources)


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v) for v in value]


def _label(key: str) -> str:
    return key.replace("_", " ").strip().capitalize()


def format_parameters(title: str, parameters: dict[str, Any], today: date | None = None) -> str:
    day = parameters.get("meeting_date") or (today or date.today()).isoformat()
    participants = _as_list(parameters.get("participants"))
    recipients = _as_list(parameters.get("email_recipients"))
    lines = [
        f"Title: {title}",
        f"Date: {day}",
        f"Participants: {', '.join(participants) or 'See transcript'}",
    ]
    if recipients:
        lines.append(f"Email Recipients: {', '.join(recipients)}")
    for key in sorted(k for k in parameters if k not in _HEADER_KEYS):
        value = parameters[key]
        if value is None or value == "":
            continue
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        lines.append(f"{_label(key)}: {value}")
    return "\n".join(lines)


def compose_generation_prompt(
    title: str,
    sources: Sequence[SourceDocument],
    parameters: dict[str, Any],
    *,
    transcript: str | None = None,
    primary_source_id: str | None = None,
    today: date | None = None,
) -> str:
    """Header, then source material.

    With primary_source_id the matching source is presented as the material to
    analyse and the others as reference documents.
    """
    blocks = [format_parameters(title, parameters, today)]
    primary = [s for s in sources if s.id == primary_source_id] if primary_source_id else []
    if primary:
        blocks.append("Source (analyse this):\n" + format_sources(primary))
        supporting = [s for s in sources if s.id != primary_source_id]
        if supporting:
            blocks.append("Reference documents:\n" + format_sources(supporting))
    elif sources:
        blocks.append("Sources:\n" + format_sources(sources))
    if transcript:
        blocks.append("Transcript:\n" + transcript)
    return "\n\n".join(blocks)


def compose_revision_system(system_instruction: str, current_content: str) -> str:
    """Revision keeps the current text in the system message; the edit request is the prompt."""
    return f"{system_instruction}\n\nCurrent content:\n{current_content}"

"""Document / version DTOs and composite read models."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docengine.db.schemas.objective import ObjectiveDTO
from docengine.db.utils import json_deserialize


class DocumentDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workspace_id: str
    title: str
    created_by_user_id: str
    document_type: str | None = None
    draft_version_id: str | None = None
    published_version_id: str | None = None
    is_searchable: bool = False
    created_at: datetime
    updated_at: datetime


class VersionDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    document_id: str
    version_number: int
    content: str
    kind: str = "text"
    punchlist: Any = Field(default=None, alias="punchlist_json")
    goal: str | None = None
    metadata: dict[str, Any] | None = Field(default=None, alias="metadata_json")
    created_by_user_id: str
    created_at: datetime

    @field_validator("punchlist", mode="before")
    @classmethod
    def parse_punchlist(cls, v: Any) -> Any:
        return json_deserialize(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def parse_metadata(cls, v: Any) -> dict[str, Any] | None:
        v = json_deserialize(v)
        return v if isinstance(v, dict) else None


class DocumentWithVersions(BaseModel):
    document: DocumentDTO
    versions: list[VersionDTO]
    latest: VersionDTO | None = None


class WorkspaceDocumentEntry(BaseModel):
    document: DocumentDTO
    latest_version: VersionDTO | None = None
    objective: ObjectiveDTO | None = None


class EnvelopeView(BaseModel):
    envelope: DocumentDTO
    draft: VersionDTO | None = None
    published: VersionDTO | None = None

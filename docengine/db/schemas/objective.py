"""Objective DTO."""
from pydantic import BaseModel, ConfigDict


class ObjectiveDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workspace_id: str
    title: str
    document_id: str | None = None

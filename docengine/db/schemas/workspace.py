"""Workspace DTOs and Create schema."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class WorkspaceDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    user_id: str
    deleted_at: datetime | None = None


class WorkspaceCreate(BaseModel):
    name: str
    user_id: str

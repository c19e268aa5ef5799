"""Chat DTO and the session binding result."""
from pydantic import BaseModel, ConfigDict


class ChatDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workspace_id: str
    objective_id: str | None
    user_id: str
    title: str
    document_version_id: str | None = None


class ChatBinding(BaseModel):
    version_id: str
    document_id: str
    is_first_version: bool
    owner_id: str

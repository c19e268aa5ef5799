"""Knowledge (source) document DTO."""
from pydantic import BaseModel, ConfigDict


class KnowledgeDocumentDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workspace_id: str
    objective_id: str | None
    title: str
    content: str | None
    category: str
    document_type: str | None = None

"""Document engine configuration. Env prefix: DOCS_."""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DocumentSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DOCS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_max_output_tokens: int = Field(default=4096, ge=1, description="Max tokens when a request sets none")
    version_retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts when two writers race for the same version number",
    )
    goal_max_length: int = Field(default=5000, ge=1, description="Max characters for a version goal")
    partial_save_default: bool = Field(default=False, description="Persist partial text on cancellation")
    default_system_instruction: str = Field(
        default="You write clear, well-structured documents from the material provided.",
        description="System instruction used when the caller passes none",
    )
    default_document_title: str = Field(default="Untitled", description="Title when the owner has none")

"""Chat ORM model: an authoring session bound to at most one document version."""
from __future__ import annotations

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from docengine.db.base import Base, IdMixin, TimestampMixin


class Chat(Base, IdMixin, TimestampMixin):
    __tablename__ = "chats"

    workspace_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
    )
    objective_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("objectives.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    # UNIQUE: two chats can never point at the same version.
    document_version_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("document_versions.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )

    __table_args__ = (
        Index("ix_chats_workspace_id_user_id", "workspace_id", "user_id"),
    )

"""Workspace ORM model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docengine.db.base import Base, IdMixin, TimestampMixin


class Workspace(Base, IdMixin, TimestampMixin):
    __tablename__ = "workspaces"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_workspaces_user_id_id", "user_id", "id"),
    )

    objectives: Mapped[list["Objective"]] = relationship(
        "Objective",
        back_populates="workspace",
        cascade="all, delete-orphan",
    )

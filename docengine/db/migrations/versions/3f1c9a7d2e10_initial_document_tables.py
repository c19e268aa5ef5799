"""initial_document_tables

Revision ID: 3f1c9a7d2e10
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "3f1c9a7d2e10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_NOW = sa.text("(datetime('now'))")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "workspaces",
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_workspaces"),
    )
    op.create_index("ix_workspaces_user_id_id", "workspaces", ["user_id", "id"], unique=False)

    op.create_table(
        "documents",
        sa.Column("workspace_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=1024), nullable=False),
        sa.Column("created_by_user_id", sa.String(length=255), nullable=False),
        sa.Column("document_type", sa.String(length=64), nullable=True),
        sa.Column("draft_version_id", sa.String(length=36), nullable=True),
        sa.Column("published_version_id", sa.String(length=36), nullable=True),
        sa.Column("is_searchable", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["workspace_id"], ["workspaces.id"],
            name="fk_documents_workspace_id_workspaces", ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_documents"),
    )
    op.create_index("ix_documents_workspace_id", "documents", ["workspace_id"], unique=False)
    op.create_index("ix_documents_workspace_id_updated_at", "documents", ["workspace_id", "updated_at"], unique=False)
    op.create_index("ix_documents_is_searchable", "documents", ["is_searchable"], unique=False)

    op.create_table(
        "document_versions",
        sa.Column("document_id", sa.String(length=36), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False, server_default="text"),
        sa.Column("punchlist_json", sa.Text(), nullable=True),
        sa.Column("goal", sa.Text(), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=True),
        sa.Column("created_by_user_id", sa.String(length=255), nullable=False),
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.ForeignKeyConstraint(
            ["document_id"], ["documents.id"],
            name="fk_document_versions_document_id_documents", ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_document_versions"),
        sa.UniqueConstraint("document_id", "version_number", name="uq_document_versions_document_number"),
    )
    op.create_index("ix_document_versions_document_id", "document_versions", ["document_id"], unique=False)

    op.create_table(
        "objectives",
        sa.Column("workspace_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=1024), nullable=False),
        sa.Column("document_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["workspace_id"], ["workspaces.id"],
            name="fk_objectives_workspace_id_workspaces", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["document_id"], ["documents.id"],
            name="fk_objectives_document_id_documents", ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_objectives"),
    )
    op.create_index("ix_objectives_workspace_id", "objectives", ["workspace_id"], unique=False)
    op.create_index("ix_objectives_document_id", "objectives", ["document_id"], unique=False)

    op.create_table(
        "chats",
        sa.Column("workspace_id", sa.String(length=36), nullable=False),
        sa.Column("objective_id", sa.String(length=36), nullable=True),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=1024), nullable=False),
        sa.Column("document_version_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["workspace_id"], ["workspaces.id"],
            name="fk_chats_workspace_id_workspaces", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["objective_id"], ["objectives.id"],
            name="fk_chats_objective_id_objectives", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["document_version_id"], ["document_versions.id"],
            name="fk_chats_document_version_id_document_versions", ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_chats"),
        sa.UniqueConstraint("document_version_id", name="uq_chats_document_version_id"),
    )
    op.create_index("ix_chats_objective_id", "chats", ["objective_id"], unique=False)
    op.create_index("ix_chats_workspace_id_user_id", "chats", ["workspace_id", "user_id"], unique=False)

    op.create_table(
        "knowledge_documents",
        sa.Column("workspace_id", sa.String(length=36), nullable=False),
        sa.Column("objective_id", sa.String(length=36), nullable=True),
        sa.Column("title", sa.String(length=1024), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=32), nullable=False, server_default="knowledge"),
        sa.Column("document_type", sa.String(length=64), nullable=True),
        sa.Column("created_by_user_id", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["workspace_id"], ["workspaces.id"],
            name="fk_knowledge_documents_workspace_id_workspaces", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["objective_id"], ["objectives.id"],
            name="fk_knowledge_documents_objective_id_objectives", ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_knowledge_documents"),
    )
    op.create_index("ix_knowledge_documents_workspace_id", "knowledge_documents", ["workspace_id"], unique=False)
    op.create_index("ix_knowledge_documents_objective_id", "knowledge_documents", ["objective_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_knowledge_documents_objective_id", table_name="knowledge_documents")
    op.drop_index("ix_knowledge_documents_workspace_id", table_name="knowledge_documents")
    op.drop_table("knowledge_documents")
    op.drop_index("ix_chats_workspace_id_user_id", table_name="chats")
    op.drop_index("ix_chats_objective_id", table_name="chats")
    op.drop_table("chats")
    op.drop_index("ix_objectives_document_id", table_name="objectives")
    op.drop_index("ix_objectives_workspace_id", table_name="objectives")
    op.drop_table("objectives")
    op.drop_index("ix_document_versions_document_id", table_name="document_versions")
    op.drop_table("document_versions")
    op.drop_index("ix_documents_is_searchable", table_name="documents")
    op.drop_index("ix_documents_workspace_id_updated_at", table_name="documents")
    op.drop_index("ix_documents_workspace_id", table_name="documents")
    op.drop_table("documents")
    op.drop_index("ix_workspaces_user_id_id", table_name="workspaces")
    op.drop_table("workspaces")

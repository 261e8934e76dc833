"""Initial chat schema.

Revision ID: 001
Create Date: 2026-10-18

Mirrors chatvault.modules.chat_history.models. No database-level foreign
keys for DuckDB compatibility; the repository enforces referential integrity.
"""

from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "chats",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False, index=True),
        sa.Column("message_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("chat_id", sa.String(36), nullable=False, index=True),
        sa.Column("sequence_number", sa.Integer, nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("parts_json", sa.Text, nullable=False),
        sa.Column("img", sa.String(1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("chat_id", "sequence_number", name="uq_chat_message_seq"),
    )

    op.create_table(
        "user_chats",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False, unique=True),
        sa.Column("entry_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "user_chat_entries",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_chats_id", sa.String(36), nullable=False, index=True),
        sa.Column("chat_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(40), nullable=False),
        sa.Column("sequence_number", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_chats_id", "sequence_number", name="uq_user_chat_entry_seq"),
    )


def downgrade() -> None:
    op.drop_table("user_chat_entries")
    op.drop_table("user_chats")
    op.drop_table("chat_messages")
    op.drop_table("chats")

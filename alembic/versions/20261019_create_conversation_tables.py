"""Create conversation and message tables

Revision ID: 20261019_create_conversation_tables
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_create_conversation_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create conversation table
    op.create_table(
        "conversation",
        sa.Column("id", sa.Uuid(as_uuid=False), primary_key=True),
        sa.Column("user_id", sa.String(100), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "length(trim(title)) > 0", name="ck_conversation_title_not_empty"
        ),
        sa.CheckConstraint(
            "updated_at >= created_at", name="ck_conversation_updated_after_created"
        ),
    )

    # Create message table
    op.create_table(
        "message",
        sa.Column("id", sa.Uuid(as_uuid=False), primary_key=True),
        sa.Column(
            "conversation_id",
            sa.Uuid(as_uuid=False),
            sa.ForeignKey(
                "conversation.id",
                name="fk_message_conversation_id",
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(100), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("model_used", sa.String(100), nullable=True),
        sa.Column("tokens_input", sa.Integer, nullable=True),
        sa.Column("tokens_output", sa.Integer, nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "role IN ('user', 'assistant', 'system')", name="ck_message_role"
        ),
        sa.CheckConstraint(
            "length(trim(content)) > 0", name="ck_message_content_not_empty"
        ),
        sa.CheckConstraint(
            "(tokens_input IS NULL OR tokens_input >= 0) AND "
            "(tokens_output IS NULL OR tokens_output >= 0)",
            name="ck_message_tokens_non_negative",
        ),
    )

    # Create indexes for efficient querying
    op.create_index("ix_conversation_user_id", "conversation", ["user_id"])
    op.create_index("ix_conversation_updated_at", "conversation", ["updated_at"])
    op.create_index("ix_message_conversation_id", "message", ["conversation_id"])
    op.create_index("ix_message_user_id", "message", ["user_id"])
    op.create_index("ix_message_timestamp", "message", ["timestamp"])


def downgrade() -> None:
    # Drop indexes
    op.drop_index("ix_message_timestamp", table_name="message")
    op.drop_index("ix_message_user_id", table_name="message")
    op.drop_index("ix_message_conversation_id", table_name="message")
    op.drop_index("ix_conversation_updated_at", table_name="conversation")
    op.drop_index("ix_conversation_user_id", table_name="conversation")

    # Drop tables
    op.drop_table("message")
    op.drop_table("conversation")

"""messaging tables

Revision ID: 3b1f9c2d7a41
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b1f9c2d7a41"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, conversations, messages, blocks and reports."""
    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "conversation",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("participant_1_id", sa.Integer(), nullable=False),
        sa.Column("participant_2_id", sa.Integer(), nullable=False),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("archived_by_user_1", sa.Boolean(), nullable=False),
        sa.Column("archived_by_user_2", sa.Boolean(), nullable=False),
        sa.CheckConstraint(
            "participant_1_id < participant_2_id", name="ck_conversation_canonical_order"
        ),
        sa.ForeignKeyConstraint(["participant_1_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["participant_2_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("participant_1_id", "participant_2_id", name="uq_conversation_pair"),
    )
    op.create_index(op.f("ix_conversation_participant_1_id"), "conversation", ["participant_1_id"])
    op.create_index(op.f("ix_conversation_participant_2_id"), "conversation", ["participant_2_id"])
    op.create_index(op.f("ix_conversation_last_message_at"), "conversation", ["last_message_at"])

    op.create_table(
        "message",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("conversation_id", sa.String(length=36), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversation.id"]),
        sa.ForeignKeyConstraint(["sender_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_message_conversation_id"), "message", ["conversation_id"])
    op.create_index(op.f("ix_message_sender_id"), "message", ["sender_id"])
    op.create_index(op.f("ix_message_sent_at"), "message", ["sent_at"])

    op.create_table(
        "blocked_user",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("blocker_id", sa.Integer(), nullable=False),
        sa.Column("blocked_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["blocker_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["blocked_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_block_pair"),
    )
    op.create_index(op.f("ix_blocked_user_blocker_id"), "blocked_user", ["blocker_id"])
    op.create_index(op.f("ix_blocked_user_blocked_id"), "blocked_user", ["blocked_id"])

    op.create_table(
        "message_report",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("message_id", sa.String(length=36), nullable=False),
        sa.Column("reporter_id", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=500), nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "REVIEWED", "RESOLVED", name="reportstatus", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["message_id"], ["message.id"]),
        sa.ForeignKeyConstraint(["reporter_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_message_report_message_id"), "message_report", ["message_id"])
    op.create_index(op.f("ix_message_report_reporter_id"), "message_report", ["reporter_id"])


def downgrade() -> None:
    """Drop the messaging tables in dependency order."""
    op.drop_index(op.f("ix_message_report_reporter_id"), table_name="message_report")
    op.drop_index(op.f("ix_message_report_message_id"), table_name="message_report")
    op.drop_table("message_report")
    op.drop_index(op.f("ix_blocked_user_blocked_id"), table_name="blocked_user")
    op.drop_index(op.f("ix_blocked_user_blocker_id"), table_name="blocked_user")
    op.drop_table("blocked_user")
    op.drop_index(op.f("ix_message_sent_at"), table_name="message")
    op.drop_index(op.f("ix_message_sender_id"), table_name="message")
    op.drop_index(op.f("ix_message_conversation_id"), table_name="message")
    op.drop_table("message")
    op.drop_index(op.f("ix_conversation_last_message_at"), table_name="conversation")
    op.drop_index(op.f("ix_conversation_participant_2_id"), table_name="conversation")
    op.drop_index(op.f("ix_conversation_participant_1_id"), table_name="conversation")
    op.drop_table("conversation")
    op.drop_table("user_account")

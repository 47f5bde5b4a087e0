"""initial chat schema

Revision ID: 5c1f0a7e2b91
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1f0a7e2b91"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, rooms, day buckets, messages and receipts."""
    op.create_table(
        "app_user",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=128), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("wallet_address", sa.String(length=130), nullable=True),
        sa.Column("public_key", sa.String(length=130), nullable=True),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )
    op.create_index("ix_app_user_wallet_address", "app_user", ["wallet_address"], unique=True)

    op.create_table(
        "chat_room",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "room_type",
            sa.Enum("Private", "Group", name="roomtype"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=120), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("algo_token", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["created_by"], ["app_user.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "chat_room_member",
        sa.Column("chat_room_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["chat_room_id"], ["chat_room.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("chat_room_id", "user_id"),
    )

    op.create_table(
        "pinned_chat_room",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("chat_room_id", sa.Integer(), nullable=False),
        sa.Column("pinned_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["chat_room_id"], ["chat_room.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "chat_room_id"),
    )

    op.create_table(
        "contact",
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("contact_user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=True),
        sa.Column("chat_room_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["chat_room_id"], ["chat_room.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["contact_user_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["owner_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("owner_id", "contact_user_id"),
    )

    op.create_table(
        "day_bucket",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("chat_room_id", sa.Integer(), nullable=False),
        sa.Column("day", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["chat_room_id"], ["chat_room.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_day_bucket_chat_room_id", "day_bucket", ["chat_room_id"])
    op.create_index("ix_day_bucket_room_day", "day_bucket", ["chat_room_id", "day"])

    op.create_table(
        "message",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("day_bucket_id", sa.Integer(), nullable=False),
        sa.Column("chat_room_id", sa.Integer(), nullable=False),
        sa.Column("message_type", sa.String(length=16), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("call_details", sa.JSON(), nullable=True),
        sa.Column("voice_note_url", sa.Text(), nullable=True),
        sa.Column("voice_note_duration", sa.String(length=32), nullable=True),
        sa.Column("read_status", sa.Boolean(), nullable=False),
        sa.Column("delivered_status", sa.Boolean(), nullable=False),
        sa.Column("time_sent", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["chat_room_id"], ["chat_room.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["day_bucket_id"], ["day_bucket.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["app_user.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_message_chat_room_id", "message", ["chat_room_id"])
    op.create_index("ix_message_day_bucket_id", "message", ["day_bucket_id"])

    op.create_table(
        "message_receipt",
        sa.Column("message_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("is_recipient", sa.Boolean(), nullable=False),
        sa.Column("delivered", sa.Boolean(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["message_id"], ["message.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("message_id", "user_id"),
    )
    op.create_index("ix_message_receipt_user_id", "message_receipt", ["user_id"])


def downgrade() -> None:
    """Drop the chat schema."""
    op.drop_index("ix_message_receipt_user_id", table_name="message_receipt")
    op.drop_table("message_receipt")
    op.drop_index("ix_message_day_bucket_id", table_name="message")
    op.drop_index("ix_message_chat_room_id", table_name="message")
    op.drop_table("message")
    op.drop_index("ix_day_bucket_room_day", table_name="day_bucket")
    op.drop_index("ix_day_bucket_chat_room_id", table_name="day_bucket")
    op.drop_table("day_bucket")
    op.drop_table("contact")
    op.drop_table("pinned_chat_room")
    op.drop_table("chat_room_member")
    op.drop_table("chat_room")
    op.drop_index("ix_app_user_wallet_address", table_name="app_user")
    op.drop_table("app_user")
    sa.Enum(name="roomtype").drop(op.get_bind(), checkfirst=True)

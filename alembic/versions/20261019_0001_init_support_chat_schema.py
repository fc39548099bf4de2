"""init support chat schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from __future__ import annotations

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    account_kind = sa.Enum("end_user", "merchant_staff", name="account_kind")
    staff_role = sa.Enum("admin", "manager", "staff", name="staff_role")

    bind = op.get_bind()
    account_kind.create(bind, checkfirst=True)
    staff_role.create(bind, checkfirst=True)

    op.create_table(
        "merchants",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "kind",
            sa.Enum("end_user", "merchant_staff", name="account_kind", create_type=False),
            nullable=False,
        ),
        sa.Column(
            "role",
            sa.Enum("admin", "manager", "staff", name="staff_role", create_type=False),
            nullable=True,
        ),
        sa.Column("merchant_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "(kind = 'end_user' AND role IS NULL AND merchant_id IS NULL) OR "
            "(kind = 'merchant_staff' AND role IS NOT NULL AND merchant_id IS NOT NULL)",
            name="ck_users_kind_affiliation",
        ),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_merchant_id", "users", ["merchant_id"], unique=False)

    op.create_table(
        "conversations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("end_user_id", sa.Integer(), nullable=False),
        sa.Column("merchant_id", sa.Integer(), nullable=False),
        sa.Column("assigned_to_id", sa.Integer(), nullable=True),
        sa.Column(
            "started_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["end_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["assigned_to_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_conversations_end_user_id", "conversations", ["end_user_id"])
    op.create_index("ix_conversations_merchant_id", "conversations", ["merchant_id"])
    op.create_index("ix_conversations_assigned_to_id", "conversations", ["assigned_to_id"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("conversation_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column(
            "sent_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["conversation_id"], ["conversations.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_messages_conversation_order",
        "messages",
        ["conversation_id", "sent_at", "id"],
    )
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"])


def downgrade() -> None:
    op.drop_index("ix_messages_sender_id", table_name="messages")
    op.drop_index("ix_messages_conversation_order", table_name="messages")
    op.drop_table("messages")

    op.drop_index("ix_conversations_assigned_to_id", table_name="conversations")
    op.drop_index("ix_conversations_merchant_id", table_name="conversations")
    op.drop_index("ix_conversations_end_user_id", table_name="conversations")
    op.drop_table("conversations")

    op.drop_index("ix_users_merchant_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_table("merchants")

    bind = op.get_bind()
    sa.Enum(name="staff_role").drop(bind, checkfirst=True)
    sa.Enum(name="account_kind").drop(bind, checkfirst=True)

"""create_daily_summary_tables

Revision ID: 3a1f9c2d7b40
Revises:
Create Date: 2026-10-19 09:12:40.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a1f9c2d7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BIGINT = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _audit() -> list[sa.Column]:
    return [
        sa.Column("created_by", sa.String(length=50), nullable=True),
        sa.Column("updated_by", sa.String(length=50), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", BIGINT, primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        *_timestamps(),
        *_audit(),
    )
    op.create_table(
        "users",
        sa.Column("id", BIGINT, primary_key=True),
        sa.Column("tenant_id", BIGINT, sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True, unique=True),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=30), nullable=False, server_default="client_user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        *_audit(),
    )
    op.create_table(
        "user_notification_preferences",
        sa.Column("id", BIGINT, primary_key=True),
        sa.Column(
            "user_id",
            BIGINT,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("daily_summary_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("daily_summary_time", sa.Time(), nullable=True),
        sa.Column("daily_summary_days", sa.Text(), nullable=True),
        sa.Column("timezone", sa.String(length=100), nullable=True),
        sa.Column("last_daily_summary_local_date", sa.String(length=10), nullable=True),
        sa.Column("last_daily_summary_sent_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        *_audit(),
    )
    op.create_table(
        "contacts",
        sa.Column("id", BIGINT, primary_key=True),
        sa.Column("tenant_id", BIGINT, sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("appointment_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("appointment_type", sa.String(length=100), nullable=True),
        sa.Column("appointment_status", sa.String(length=50), nullable=False, server_default="pending"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_contact_tenant_appointment", "contacts", ["tenant_id", "appointment_time"])
    op.create_table(
        "call_sessions",
        sa.Column("id", BIGINT, primary_key=True),
        sa.Column("tenant_id", BIGINT, sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("contact_id", BIGINT, sa.ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="queued"),
        sa.Column("call_outcome", sa.String(length=20), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_call_session_tenant_created", "call_sessions", ["tenant_id", "created_at"])
    op.create_table(
        "appointment_status_changes",
        sa.Column("id", BIGINT, primary_key=True),
        sa.Column("tenant_id", BIGINT, sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column(
            "contact_id",
            BIGINT,
            sa.ForeignKey("contacts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("from_status", sa.String(length=50), nullable=True),
        sa.Column("to_status", sa.String(length=50), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_status_change_tenant_changed",
        "appointment_status_changes",
        ["tenant_id", "changed_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_status_change_tenant_changed", table_name="appointment_status_changes")
    op.drop_table("appointment_status_changes")
    op.drop_index("ix_call_session_tenant_created", table_name="call_sessions")
    op.drop_table("call_sessions")
    op.drop_index("ix_contact_tenant_appointment", table_name="contacts")
    op.drop_table("contacts")
    op.drop_table("user_notification_preferences")
    op.drop_table("users")
    op.drop_table("tenants")

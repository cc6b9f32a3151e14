from __future__ import annotations
"""server/reminder_engine/migrations/versions/0001_initial.py
~~~~~~~~~~~~~~~~~~~~~~~~
Schéma initial : events, notifications, in_app_notifications.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

UUID = postgresql.UUID(as_uuid=True).with_variant(sa.String(36), "sqlite")
JSON = postgresql.JSONB(astext_type=sa.Text()).with_variant(sa.JSON(), "sqlite")
TSTZ = sa.TIMESTAMP(timezone=True)


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("event_date", TSTZ, nullable=False),
        sa.Column("event_summary", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_type", sa.String(32), nullable=False, server_default="reminder"),
        sa.Column("priority", sa.String(16), nullable=False, server_default="medium"),
        sa.Column("notification_schedule", JSON, nullable=False),
        sa.Column("notified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", TSTZ, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_events_user_id", "events", ["user_id"])

    op.create_table(
        "notifications",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("event_id", UUID, nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("notification_time", TSTZ, nullable=False),
        sa.Column("notification_type", sa.String(32), nullable=False),
        sa.Column("sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sent_at", TSTZ, nullable=True),
        sa.Column("delivery_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("event_summary", sa.Text(), nullable=True),
        sa.Column("event_type", sa.String(32), nullable=True),
        sa.Column("priority", sa.String(16), nullable=True),
        sa.Column("created_at", TSTZ, nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("event_id", "notification_type", name="uq_notifications_event_type"),
    )
    op.create_index("ix_notifications_due", "notifications", ["sent", "notification_time"])
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "in_app_notifications",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("priority", sa.String(16), nullable=False, server_default="medium"),
        sa.Column("event_id", UUID, nullable=True),
        sa.Column("notification_id", UUID, nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", TSTZ, nullable=True),
        sa.Column("delivered_at", TSTZ, nullable=True),
        sa.Column("delivery_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("data", JSON, nullable=False),
        sa.Column("created_at", TSTZ, nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["notification_id"], ["notifications.id"], ondelete="SET NULL"),
    )
    op.create_index(
        "ix_in_app_user_read_created", "in_app_notifications", ["user_id", "is_read", "created_at"]
    )
    op.create_index(
        "ix_in_app_notifications_notification_id", "in_app_notifications", ["notification_id"], unique=True
    )


def downgrade() -> None:
    op.drop_index("ix_in_app_notifications_notification_id", table_name="in_app_notifications")
    op.drop_index("ix_in_app_user_read_created", table_name="in_app_notifications")
    op.drop_table("in_app_notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_index("ix_notifications_due", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_events_user_id", table_name="events")
    op.drop_table("events")

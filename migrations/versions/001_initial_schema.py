"""Initial schema: users, rides, notifications and push subscriptions.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column(
            "push_enabled",
            sa.Boolean,
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── rides ─────────────────────────────────────────────────────────
    op.create_table(
        "rides",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "requester_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "accepter_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True
        ),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "accepted",
                "completed",
                "cancelled",
                name="ridestatus",
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("from_location", sa.String(255), nullable=False),
        sa.Column("to_location", sa.String(255), nullable=False),
        sa.Column("from_lat", sa.Float, nullable=True),
        sa.Column("from_lon", sa.Float, nullable=True),
        sa.Column("to_lat", sa.Float, nullable=True),
        sa.Column("to_lon", sa.Float, nullable=True),
        sa.Column("departure_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("seats", sa.Integer, nullable=False, server_default="1"),
        sa.Column("rider_name", sa.String(120), nullable=True),
        sa.Column("rider_phone", sa.String(40), nullable=True),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column(
            "is_edited", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        # accepter_id is set exactly when the ride is accepted or completed
        sa.CheckConstraint(
            "(status IN ('accepted', 'completed')) = (accepter_id IS NOT NULL)",
            name="ck_rides_accepter_matches_status",
        ),
    )
    op.create_index("idx_rides_status", "rides", ["status"])
    op.create_index("idx_rides_requester", "rides", ["requester_id"])
    op.create_index("idx_rides_accepter", "rides", ["accepter_id"])

    # ── notifications ─────────────────────────────────────────────────
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "type",
            sa.Enum(
                "rideAccepted",
                "offerCancelled",
                "rideCancelled",
                "rideCompleted",
                "admin_notification",
                name="notificationtype",
            ),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("related_id", sa.Integer, nullable=True),
        sa.Column(
            "is_read", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_notifications_user_created",
        "notifications",
        ["user_id", "created_at"],
    )
    op.create_index("idx_notifications_type", "notifications", ["type"])

    # ── push_subscriptions ────────────────────────────────────────────
    op.create_table(
        "push_subscriptions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("device_id", sa.String(128), nullable=False),
        sa.Column("device_name", sa.String(120), nullable=True),
        sa.Column("subscription", sa.JSON, nullable=False),
        sa.Column(
            "enabled", sa.Boolean, nullable=False, server_default=sa.true()
        ),
        sa.Column("last_used", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("user_id", "device_id", name="uq_push_user_device"),
    )
    op.create_index(
        "idx_push_user_enabled", "push_subscriptions", ["user_id", "enabled"]
    )


def downgrade() -> None:
    op.drop_table("push_subscriptions")
    op.drop_table("notifications")
    op.drop_table("rides")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS notificationtype")
    op.execute("DROP TYPE IF EXISTS ridestatus")

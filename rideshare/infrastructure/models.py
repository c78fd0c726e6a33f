"""
SQLAlchemy ORM models.

Tables
------
* ``users``               -- registered users (read-only for the lifecycle core)
* ``rides``               -- ride requests and their lifecycle status
* ``notifications``       -- durable in-app notifications, append-only here
* ``push_subscriptions``  -- per-device push endpoints

Indexes
-------
* **B-Tree** on ``rides.status`` / ``requester_id`` / ``accepter_id``.
* ``(user_id, created_at)`` and ``type`` on notifications so they can be
  listed by recency and filtered by type.
* ``(user_id, enabled)`` on push subscriptions for the dispatcher fan-out.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from .database import Base
from rideshare.domain.enums import NotificationType, RideStatus


def _enum_values(enum_cls):
    # Persist the lowercase / camelCase values rather than member names
    return [member.value for member in enum_cls]


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    push_enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class RideModel(Base):
    __tablename__ = "rides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    accepter_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(
        Enum(RideStatus, name="ridestatus", values_callable=_enum_values),
        default=RideStatus.PENDING,
        nullable=False,
    )

    # Ride details, replaced as a whole by an edit
    from_location = Column(String(255), nullable=False, default="")
    to_location = Column(String(255), nullable=False, default="")
    from_lat = Column(Float, nullable=True)
    from_lon = Column(Float, nullable=True)
    to_lat = Column(Float, nullable=True)
    to_lon = Column(Float, nullable=True)
    departure_time = Column(DateTime(timezone=True), nullable=True)
    seats = Column(Integer, default=1, nullable=False)
    rider_name = Column(String(120), nullable=True)
    rider_phone = Column(String(40), nullable=True)
    note = Column(Text, nullable=True)

    is_edited = Column(Boolean, default=False, nullable=False)
    # Bumped on every lifecycle write; guards the conditional update
    version = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_rides_status", "status"),
        Index("idx_rides_requester", "requester_id"),
        Index("idx_rides_accepter", "accepter_id"),
        # accepter_id is set exactly when the ride is accepted or completed
        CheckConstraint(
            "(status IN ('accepted', 'completed')) = (accepter_id IS NOT NULL)",
            name="ck_rides_accepter_matches_status",
        ),
    )


class NotificationModel(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    type = Column(
        Enum(NotificationType, name="notificationtype", values_callable=_enum_values),
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    related_id = Column(Integer, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_notifications_user_created", "user_id", "created_at"),
        Index("idx_notifications_type", "type"),
    )


class PushSubscriptionModel(Base):
    __tablename__ = "push_subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    device_id = Column(String(128), nullable=False)
    device_name = Column(String(120), nullable=True)
    # Browser PushSubscription JSON: {"endpoint": ..., "keys": {...}}
    subscription = Column(JSON, nullable=False)
    enabled = Column(Boolean, default=True, nullable=False)
    last_used = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "device_id", name="uq_push_user_device"),
        Index("idx_push_user_enabled", "user_id", "enabled"),
    )

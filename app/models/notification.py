# app/models/notification.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


def _now():
    return datetime.now(timezone.utc)


class Notification(Base):
    """
    Immutable event record. Fan-out lives in NotificationRecipient and is
    fixed at creation time.
    """
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    type: Mapped[str] = mapped_column(String(96), nullable=False)  # e.g. program.member_left

    program_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("programs.id", ondelete="CASCADE"), nullable=True
    )
    # NULL for system-caused events
    actor_member_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now
    )

    __table_args__ = (
        Index("ix_notifications_actor", "actor_member_id"),
        Index("ix_notifications_created", "created_at"),
    )


class NotificationRecipient(Base):
    __tablename__ = "notification_recipients"

    notification_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("notifications.id", ondelete="CASCADE"), primary_key=True
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("members.id", ondelete="CASCADE"), primary_key=True
    )

    acknowledged_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_notification_recipients_member_ack", "member_id", "acknowledged_at"),
    )

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.enums import InviteStatus


class ProgramInvite(Base):
    __tablename__ = "program_invites"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    program_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )
    invited_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("members.id", ondelete="CASCADE"), nullable=True
    )

    # Invite targets a username or an email address.
    invited_username: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    invited_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)

    status: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default=text("'pending'"), default=InviteStatus.pending.value
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_program_invites_program", "program_id"),
        Index("ix_program_invites_username", "invited_username"),
        Index("ix_program_invites_email", "invited_email"),
    )

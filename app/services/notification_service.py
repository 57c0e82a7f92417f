# app/services/notification_service.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import insert, select
from sqlalchemy.orm import Session

from app.db.commit_hooks import run_after_commit
from app.models.enums import MembershipStatus, NotificationType
from app.models.member import Member
from app.models.notification import Notification, NotificationRecipient
from app.models.program_membership import ProgramMembership
from app.services.live_delivery import LiveDeliveryRegistry

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


def _iso(dt):
    return dt.isoformat() if dt else None


def _str_or_none(v):
    return str(v) if v is not None else None


def build_notification_payload(notification: Notification) -> Dict[str, Any]:
    """
    Wire shape shared by the live stream and the unacknowledged listing.
    """
    return {
        "id": str(notification.id),
        "type": notification.type,
        "program_id": _str_or_none(notification.program_id),
        "actor_member_id": _str_or_none(notification.actor_member_id),
        "title": notification.title,
        "body": notification.body,
        "created_at": _iso(notification.created_at),
    }


def get_active_program_member_ids(db: Session, program_id: uuid.UUID) -> List[uuid.UUID]:
    return list(
        db.execute(
            select(ProgramMembership.member_id)
            .where(
                ProgramMembership.program_id == program_id,
                ProgramMembership.status == MembershipStatus.active.value,
            )
            .order_by(ProgramMembership.joined_at.asc(), ProgramMembership.member_id.asc())
        ).scalars()
    )


class NotificationService:
    def __init__(self, registry: Optional[LiveDeliveryRegistry] = None):
        self.registry = registry

    # ---------------------------
    # DISPATCH
    # ---------------------------

    def notify(
        self,
        db: Session,
        *,
        type: Union[NotificationType, str],
        title: str,
        body: str,
        recipient_ids: Iterable[Optional[uuid.UUID]],
        program_id: Optional[uuid.UUID] = None,
        actor_member_id: Optional[uuid.UUID] = None,
    ) -> Optional[Notification]:
        """
        Create a notification plus one recipient row per unique, existing
        member, inside the caller's transaction.

        Returns None (and writes nothing) when no valid recipient remains.
        The live push runs only after the enclosing transaction commits.
        """
        recipients = self._valid_recipients(db, recipient_ids)
        if not recipients:
            return None

        notification = Notification(
            type=type.value if isinstance(type, NotificationType) else type,
            program_id=program_id,
            actor_member_id=actor_member_id,
            title=title,
            body=body,
            created_at=_now(),
        )
        db.add(notification)
        db.flush()

        db.execute(
            insert(NotificationRecipient),
            [
                {"notification_id": notification.id, "member_id": member_id, "acknowledged_at": None}
                for member_id in recipients
            ],
        )

        payload = build_notification_payload(notification)

        def dispatch() -> None:
            self._push(recipients, payload)

        run_after_commit(db, dispatch)
        return notification

    def _valid_recipients(
        self, db: Session, recipient_ids: Iterable[Optional[uuid.UUID]]
    ) -> List[uuid.UUID]:
        # ordered de-dup, falsy ids dropped
        unique = list(dict.fromkeys(r for r in (recipient_ids or []) if r))
        if not unique:
            return []
        existing = set(
            db.execute(select(Member.id).where(Member.id.in_(unique))).scalars()
        )
        return [r for r in unique if r in existing]

    def _push(self, recipients: List[uuid.UUID], payload: Dict[str, Any]) -> None:
        if self.registry is None:
            return
        for member_id in recipients:
            self.registry.push(member_id, payload)
        logger.debug(
            "[notify] pushed type=%s id=%s recipients=%s",
            payload["type"],
            payload["id"],
            len(recipients),
        )

    # ---------------------------
    # READS / ACK
    # ---------------------------

    def list_unacknowledged(self, db: Session, *, member_id: uuid.UUID) -> List[Notification]:
        """
        Oldest first; clients call this on (re)connect to catch missed pushes.
        """
        return list(
            db.execute(
                select(Notification)
                .join(
                    NotificationRecipient,
                    NotificationRecipient.notification_id == Notification.id,
                )
                .where(
                    NotificationRecipient.member_id == member_id,
                    NotificationRecipient.acknowledged_at.is_(None),
                )
                .order_by(Notification.created_at.asc(), Notification.id.asc())
            ).scalars()
        )

    def acknowledge(
        self,
        db: Session,
        *,
        notification_id: uuid.UUID,
        member_id: uuid.UUID,
    ) -> NotificationRecipient:
        row = (
            db.execute(
                select(NotificationRecipient).where(
                    NotificationRecipient.notification_id == notification_id,
                    NotificationRecipient.member_id == member_id,
                    NotificationRecipient.acknowledged_at.is_(None),
                )
            )
            .scalars()
            .one_or_none()
        )
        if not row:
            raise LookupError("Notification not found.")

        row.acknowledged_at = _now()
        db.commit()
        return row

# app/services/membership_exit_service.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from app.models.enums import MembershipStatus, NotificationType, ProgramRole
from app.models.member import Member
from app.models.program import Program
from app.models.program_membership import ProgramMembership
from app.services.notification_service import NotificationService, get_active_program_member_ids

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


class ExitOutcome(str, Enum):
    deleted = "deleted"
    promoted = "promoted"
    unchanged = "unchanged"


@dataclass(frozen=True)
class ExitResult:
    program_id: uuid.UUID
    outcome: ExitOutcome
    new_admin_member_id: Optional[uuid.UUID] = None
    new_admin_member_name: Optional[str] = None

    @property
    def program_deleted(self) -> bool:
        return self.outcome == ExitOutcome.deleted


class MembershipExitService:
    """
    Decides a program's fate when one member exits it.

    Every read and write goes through the caller's session; nothing is
    committed here. After ``resolve_exit`` returns, a program with at least
    one active membership has at least one active admin.
    """

    def __init__(self, notifications: NotificationService):
        self.notifications = notifications

    # ---------------------------
    # READS
    # ---------------------------

    def program_for_update_stmt(self, program_id: uuid.UUID) -> Select:
        return (
            select(Program)
            .where(Program.id == program_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

    def get_program_for_update(self, db: Session, program_id: uuid.UUID) -> Optional[Program]:
        """
        Lock the program row so concurrent exits from one program serialize.
        """
        return db.execute(self.program_for_update_stmt(program_id)).scalars().one_or_none()

    def count_active(
        self,
        db: Session,
        *,
        program_id: uuid.UUID,
        exclude_member_id: uuid.UUID,
        role: Optional[str] = None,
    ) -> int:
        q = select(func.count()).select_from(ProgramMembership).where(
            ProgramMembership.program_id == program_id,
            ProgramMembership.status == MembershipStatus.active.value,
            ProgramMembership.member_id != exclude_member_id,
        )
        if role:
            q = q.where(ProgramMembership.role == role)
        return db.execute(q).scalar_one()

    def find_promotion_candidate(
        self,
        db: Session,
        *,
        program_id: uuid.UUID,
        exclude_member_id: uuid.UUID,
    ) -> Optional[ProgramMembership]:
        """
        Oldest active membership of any role; ties go to the lowest member id.
        """
        return (
            db.execute(
                select(ProgramMembership)
                .where(
                    ProgramMembership.program_id == program_id,
                    ProgramMembership.status == MembershipStatus.active.value,
                    ProgramMembership.member_id != exclude_member_id,
                )
                .order_by(ProgramMembership.joined_at.asc(), ProgramMembership.member_id.asc())
                .limit(1)
            )
            .scalars()
            .first()
        )

    # ---------------------------
    # RESOLUTION
    # ---------------------------

    def resolve_exit(
        self,
        db: Session,
        *,
        program_id: uuid.UUID,
        exiting_member_id: uuid.UUID,
        update_created_by: bool = False,
        actor_member_id: Optional[uuid.UUID] = None,
        include_exiting_member_in_recipients: bool = False,
    ) -> ExitResult:
        """
        Outcomes:
        - program missing or already soft-deleted -> unchanged (no-op)
        - nobody else active -> deleted (soft-delete + program.deleted)
        - no other active admin -> promoted (role_changed + admin_transferred)
        - otherwise -> unchanged

        Safe to call for a member who is not active in the program.
        """
        program = self.get_program_for_update(db, program_id)
        if not program or program.is_deleted:
            return ExitResult(program_id=program_id, outcome=ExitOutcome.unchanged)

        remaining = self.count_active(db, program_id=program_id, exclude_member_id=exiting_member_id)

        if remaining == 0:
            self._soft_delete(
                db,
                program,
                exiting_member_id=exiting_member_id,
                update_created_by=update_created_by,
                actor_member_id=actor_member_id,
                include_exiting_member_in_recipients=include_exiting_member_in_recipients,
            )
            return ExitResult(program_id=program_id, outcome=ExitOutcome.deleted)

        result = ExitResult(program_id=program_id, outcome=ExitOutcome.unchanged)

        remaining_admins = self.count_active(
            db,
            program_id=program_id,
            exclude_member_id=exiting_member_id,
            role=ProgramRole.admin.value,
        )
        if remaining_admins == 0:
            candidate = self.find_promotion_candidate(
                db, program_id=program_id, exclude_member_id=exiting_member_id
            )
            if candidate:
                result = self._promote(
                    db,
                    program,
                    candidate,
                    exiting_member_id=exiting_member_id,
                    actor_member_id=actor_member_id,
                    include_exiting_member_in_recipients=include_exiting_member_in_recipients,
                )

        if update_created_by and program.created_by == exiting_member_id:
            program.created_by = None
            program.updated_at = _now()
            db.flush()

        return result

    def _soft_delete(
        self,
        db: Session,
        program: Program,
        *,
        exiting_member_id: uuid.UUID,
        update_created_by: bool,
        actor_member_id: Optional[uuid.UUID],
        include_exiting_member_in_recipients: bool,
    ) -> None:
        program.is_deleted = True
        program.updated_at = _now()
        if update_created_by and program.created_by == exiting_member_id:
            program.created_by = None
        db.flush()

        recipients = self._recipients(
            db,
            program.id,
            exiting_member_id=exiting_member_id,
            include_exiting_member=False,
        )
        if include_exiting_member_in_recipients:
            recipients.append(exiting_member_id)

        self.notifications.notify(
            db,
            type=NotificationType.PROGRAM_DELETED,
            program_id=program.id,
            actor_member_id=actor_member_id,
            title="Program deleted",
            body=f"{program.name} was deleted because no members remain.",
            recipient_ids=recipients,
        )
        logger.info("[exit] soft-deleted program=%s (no active members)", program.id)

    def _promote(
        self,
        db: Session,
        program: Program,
        candidate: ProgramMembership,
        *,
        exiting_member_id: uuid.UUID,
        actor_member_id: Optional[uuid.UUID],
        include_exiting_member_in_recipients: bool,
    ) -> ExitResult:
        if candidate.role != ProgramRole.admin.value:
            candidate.role = ProgramRole.admin.value
            db.flush()

        member = db.get(Member, candidate.member_id)
        member_name = member.member_name if member else None

        self.notifications.notify(
            db,
            type=NotificationType.PROGRAM_ROLE_CHANGED,
            program_id=program.id,
            actor_member_id=actor_member_id,
            title="Role updated",
            body=f"Your role in {program.name} is now admin.",
            recipient_ids=[candidate.member_id],
        )
        self.notifications.notify(
            db,
            type=NotificationType.PROGRAM_ADMIN_TRANSFERRED,
            program_id=program.id,
            actor_member_id=candidate.member_id,
            title="New admin assigned",
            body=f"{member_name or 'A member'} is now an admin of {program.name}.",
            recipient_ids=self._recipients(
                db,
                program.id,
                exiting_member_id=exiting_member_id,
                include_exiting_member=include_exiting_member_in_recipients,
            ),
        )
        logger.info(
            "[exit] promoted member=%s to admin for program=%s",
            candidate.member_id,
            program.id,
        )
        return ExitResult(
            program_id=program.id,
            outcome=ExitOutcome.promoted,
            new_admin_member_id=candidate.member_id,
            new_admin_member_name=member_name,
        )

    def _recipients(
        self,
        db: Session,
        program_id: uuid.UUID,
        *,
        exiting_member_id: uuid.UUID,
        include_exiting_member: bool,
    ) -> List[uuid.UUID]:
        ids = get_active_program_member_ids(db, program_id)
        if include_exiting_member:
            return ids
        return [m for m in ids if m != exiting_member_id]

# app/services/membership_lifecycle_service.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from app.models.enums import GlobalRole, MembershipStatus, NotificationType
from app.models.member import Member, MemberEmail
from app.models.notification import Notification
from app.models.program import Program
from app.models.program_invite import ProgramInvite
from app.models.program_membership import ProgramMembership
from app.policies.program_membership_policy import enforce_program_admin, get_active_membership
from app.policies.rbac import Principal, require_global_admin
from app.services.membership_exit_service import ExitResult, MembershipExitService
from app.services.notification_service import NotificationService, get_active_program_member_ids

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


class MembershipLifecycleService:
    """
    Entry points that take a member out of programs. Each call is one
    transaction: commit at the end, rollback and re-raise on any failure.
    """

    def __init__(self, notifications: NotificationService):
        self.notifications = notifications
        self.exits = MembershipExitService(notifications)

    # ---------------------------
    # PROGRAM-LEVEL EXITS
    # ---------------------------

    def leave_program(
        self,
        db: Session,
        *,
        program_id: uuid.UUID,
        member_id: uuid.UUID,
    ) -> ExitResult:
        try:
            program = self._get_live_program(db, program_id)
            membership = get_active_membership(db, program_id=program_id, member_id=member_id)
            if not membership:
                raise ValueError("You are not an active member of this program.")

            self._end_membership(db, membership, MembershipStatus.left)

            result = self.exits.resolve_exit(
                db,
                program_id=program_id,
                exiting_member_id=member_id,
                update_created_by=False,
                actor_member_id=member_id,
                include_exiting_member_in_recipients=True,
            )

            if not result.program_deleted:
                member = db.get(Member, member_id)
                self._notify_member_left(
                    db,
                    program,
                    exiting_member_id=member_id,
                    actor_member_id=member_id,
                    body=f"{member.member_name if member else 'A member'} left {program.name}.",
                )

            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info("[leave] member=%s left program=%s outcome=%s", member_id, program_id, result.outcome.value)
        return result

    def remove_from_program(
        self,
        db: Session,
        *,
        program_id: uuid.UUID,
        member_id: uuid.UUID,
        actor: Principal,
    ) -> ExitResult:
        try:
            if member_id == actor.member_id:
                raise ValueError("Use leave to exit a program yourself.")

            program = self._get_live_program(db, program_id)
            enforce_program_admin(db=db, program_id=program_id, principal=actor)

            membership = get_active_membership(db, program_id=program_id, member_id=member_id)
            if not membership:
                raise LookupError("Member is not active in this program.")

            self._end_membership(db, membership, MembershipStatus.removed)

            result = self.exits.resolve_exit(
                db,
                program_id=program_id,
                exiting_member_id=member_id,
                update_created_by=False,
                actor_member_id=actor.member_id,
                include_exiting_member_in_recipients=True,
            )

            if not result.program_deleted:
                self.notifications.notify(
                    db,
                    type=NotificationType.PROGRAM_MEMBER_REMOVED,
                    program_id=program_id,
                    actor_member_id=actor.member_id,
                    title="Removed from program",
                    body=f"You were removed from {program.name}.",
                    recipient_ids=[member_id],
                )
                self._notify_member_left(
                    db,
                    program,
                    exiting_member_id=member_id,
                    actor_member_id=actor.member_id,
                    body=f"A member was removed from {program.name}.",
                )

            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            "[remove] member=%s removed from program=%s by=%s outcome=%s",
            member_id,
            program_id,
            actor.member_id,
            result.outcome.value,
        )
        return result

    # ---------------------------
    # ACCOUNT-LEVEL EXITS
    # ---------------------------

    def delete_account(self, db: Session, *, member_id: uuid.UUID) -> List[ExitResult]:
        """
        Self-service deletion. Global admins are refused.
        """
        try:
            member = db.get(Member, member_id)
            if not member:
                raise LookupError("Account not found.")
            if member.global_role == GlobalRole.global_admin.value:
                raise PermissionError(
                    "Global admin accounts cannot be deleted through this endpoint."
                )

            results = self._purge_member(db, member, log_prefix="[delete-account]")
            db.commit()
        except Exception:
            db.rollback()
            raise
        return results

    def delete_member(
        self,
        db: Session,
        *,
        member_id: uuid.UUID,
        actor: Principal,
    ) -> List[ExitResult]:
        """
        Global admin removes another member's account.
        """
        try:
            require_global_admin(actor)
            member = db.get(Member, member_id)
            if not member:
                raise LookupError("Member not found.")
            if member.global_role == GlobalRole.global_admin.value:
                raise PermissionError("Cannot delete global admin account.")

            results = self._purge_member(db, member, log_prefix="[delete-member]")
            db.commit()
        except Exception:
            db.rollback()
            raise
        return results

    def _purge_member(self, db: Session, member: Member, *, log_prefix: str) -> List[ExitResult]:
        member_id = member.id
        logger.info("%s starting deletion for member=%s", log_prefix, member_id)

        deleted_invites = self._purge_invites(db, member)
        logger.info("%s deleted %s program invites sent by or targeting member", log_prefix, deleted_invites)

        # titles and bodies carry the actor's name
        db.execute(
            delete(Notification).where(Notification.actor_member_id == member_id),
            execution_options={"synchronize_session": False},
        )
        logger.info("%s deleted notifications where member is actor", log_prefix)

        results: List[ExitResult] = []
        for program_id in self._touched_program_ids(db, member_id):
            result = self.exits.resolve_exit(
                db,
                program_id=program_id,
                exiting_member_id=member_id,
                update_created_by=True,
                actor_member_id=None,
                include_exiting_member_in_recipients=False,
            )
            results.append(result)

            if result.program_deleted:
                logger.info("%s soft-deleted program=%s (no active members)", log_prefix, program_id)
                continue
            if result.new_admin_member_id:
                logger.info(
                    "%s promoted member=%s to admin for program=%s",
                    log_prefix,
                    result.new_admin_member_id,
                    program_id,
                )

            program = db.get(Program, program_id)
            if program and not program.is_deleted:
                self._notify_member_left(
                    db,
                    program,
                    exiting_member_id=member_id,
                    actor_member_id=None,
                    body=f"A member left {program.name}.",
                )

        # memberships, logs, emails and recipient rows cascade in the database
        db.delete(member)
        db.flush()
        logger.info("%s member record deleted for member=%s", log_prefix, member_id)
        return results

    # ---------------------------
    # HELPERS
    # ---------------------------

    def _get_live_program(self, db: Session, program_id: uuid.UUID) -> Program:
        program = db.get(Program, program_id)
        if not program or program.is_deleted:
            raise LookupError("Program not found.")
        return program

    def _end_membership(
        self, db: Session, membership: ProgramMembership, status: MembershipStatus
    ) -> None:
        membership.status = status.value
        membership.left_at = _now()
        db.flush()

    def _touched_program_ids(self, db: Session, member_id: uuid.UUID) -> List[uuid.UUID]:
        """
        Active memberships first, then live programs the member created.
        """
        active = db.execute(
            select(ProgramMembership.program_id)
            .where(
                ProgramMembership.member_id == member_id,
                ProgramMembership.status == MembershipStatus.active.value,
            )
            .order_by(ProgramMembership.joined_at.asc())
        ).scalars()
        created = db.execute(
            select(Program.id)
            .where(Program.created_by == member_id, Program.is_deleted.is_(False))
            .order_by(Program.created_at.asc())
        ).scalars()
        return list(dict.fromkeys([*active, *created]))

    def _purge_invites(self, db: Session, member: Member) -> int:
        emails = [
            e
            for e in db.execute(
                select(MemberEmail.email).where(MemberEmail.member_id == member.id)
            ).scalars()
            if e
        ]
        filters = [
            ProgramInvite.invited_by == member.id,
            ProgramInvite.invited_username == member.username,
        ]
        if emails:
            filters.append(ProgramInvite.invited_email.in_(emails))

        res = db.execute(
            delete(ProgramInvite).where(or_(*filters)),
            execution_options={"synchronize_session": False},
        )
        return res.rowcount or 0

    def _notify_member_left(
        self,
        db: Session,
        program: Program,
        *,
        exiting_member_id: uuid.UUID,
        actor_member_id: Optional[uuid.UUID],
        body: str,
    ) -> None:
        recipients = [
            m for m in get_active_program_member_ids(db, program.id) if m != exiting_member_id
        ]
        self.notifications.notify(
            db,
            type=NotificationType.PROGRAM_MEMBER_LEFT,
            program_id=program.id,
            actor_member_id=actor_member_id,
            title="Member left",
            body=body,
            recipient_ids=recipients,
        )

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.enums import MembershipStatus, ProgramRole
from app.models.program_membership import ProgramMembership
from app.policies.rbac import Principal


def get_active_membership(
    db: Session,
    *,
    program_id: uuid.UUID,
    member_id: uuid.UUID,
) -> Optional[ProgramMembership]:
    return (
        db.execute(
            select(ProgramMembership).where(
                ProgramMembership.program_id == program_id,
                ProgramMembership.member_id == member_id,
                ProgramMembership.status == MembershipStatus.active.value,
            )
        )
        .scalars()
        .one_or_none()
    )


def enforce_program_admin(
    *,
    db: Session,
    program_id: uuid.UUID,
    principal: Principal,
) -> None:
    """
    Caller must be an active admin of the program.
    Global admins bypass the membership check.
    """
    if principal.is_global_admin:
        return

    row = get_active_membership(db, program_id=program_id, member_id=principal.member_id)
    if not row or row.role != ProgramRole.admin.value:
        raise PermissionError("Program admin only.")

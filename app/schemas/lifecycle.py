#app/schemas/lifecycle.py
from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel

from app.services.membership_exit_service import ExitResult


class ExitResultOut(BaseModel):
    program_id: str
    outcome: str
    program_deleted: bool
    new_admin_member_id: Optional[str] = None
    new_admin_member_name: Optional[str] = None

    @classmethod
    def from_result(cls, r: ExitResult) -> "ExitResultOut":
        return cls(
            program_id=str(r.program_id),
            outcome=r.outcome.value,
            program_deleted=r.program_deleted,
            new_admin_member_id=str(r.new_admin_member_id) if r.new_admin_member_id else None,
            new_admin_member_name=r.new_admin_member_name,
        )


class ProgramExitResponse(BaseModel):
    message: str
    result: ExitResultOut


class AccountDeletionResponse(BaseModel):
    message: str
    programs: List[ExitResultOut]

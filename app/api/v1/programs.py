from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.auth_deps import get_current_principal
from app.core.deps import get_lifecycle_service
from app.db.session import get_db
from app.policies.rbac import Principal
from app.schemas.lifecycle import ExitResultOut, ProgramExitResponse
from app.services.membership_lifecycle_service import MembershipLifecycleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/programs")


@router.post("/{program_id}/leave", response_model=ProgramExitResponse)
def leave_program(
    program_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    svc: MembershipLifecycleService = Depends(get_lifecycle_service),
):
    try:
        result = svc.leave_program(db, program_id=program_id, member_id=principal.member_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception:
        logger.exception("[leave] failed program=%s member=%s", program_id, principal.member_id)
        raise HTTPException(status_code=500, detail="Server error while leaving program.")

    return {"message": "Left program.", "result": ExitResultOut.from_result(result)}


@router.delete("/{program_id}/members/{member_id}", response_model=ProgramExitResponse)
def remove_program_member(
    program_id: uuid.UUID,
    member_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    svc: MembershipLifecycleService = Depends(get_lifecycle_service),
):
    try:
        result = svc.remove_from_program(
            db, program_id=program_id, member_id=member_id, actor=principal
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception:
        logger.exception("[remove] failed program=%s member=%s", program_id, member_id)
        raise HTTPException(status_code=500, detail="Server error while removing member.")

    return {"message": "Member removed.", "result": ExitResultOut.from_result(result)}

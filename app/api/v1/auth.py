from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.auth_deps import get_current_principal
from app.core.deps import get_lifecycle_service
from app.db.session import get_db
from app.policies.rbac import Principal
from app.schemas.lifecycle import AccountDeletionResponse, ExitResultOut
from app.services.membership_lifecycle_service import MembershipLifecycleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


@router.delete("/account", response_model=AccountDeletionResponse)
def delete_account(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    svc: MembershipLifecycleService = Depends(get_lifecycle_service),
):
    """
    Permanently deletes the caller's account and everything it owns.
    """
    try:
        results = svc.delete_account(db, member_id=principal.member_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("[delete-account] failed member=%s", principal.member_id)
        raise HTTPException(status_code=500, detail="Server error during account deletion.")

    return {
        "message": "Account deleted successfully.",
        "programs": [ExitResultOut.from_result(r) for r in results],
    }

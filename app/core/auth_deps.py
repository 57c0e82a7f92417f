#app/core/auth_deps.py
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import decode_token
from app.models.enums import GlobalRole
from app.policies.rbac import Principal

bearer = HTTPBearer(auto_error=True)
optional_bearer = HTTPBearer(auto_error=False)


def _principal_from_token(request: Request, token: str) -> Principal:
    """
    Guarantees:
    - JWT is valid
    - sub (member id) and global_role claims are present and well-formed
    """
    try:
        payload = decode_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")

    member_id = payload.get("sub")
    role = payload.get("global_role") or GlobalRole.standard.value
    username = payload.get("username") or ""

    if not member_id:
        raise HTTPException(status_code=401, detail="Token missing required claims.")

    try:
        member_uuid = uuid.UUID(str(member_id))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid member id in token.")

    try:
        role_enum = GlobalRole(role)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid role in token.")

    principal = Principal(member_id=member_uuid, username=str(username), global_role=role_enum)

    # Make principal available to downstream middleware / handlers
    request.state.principal = principal
    return principal


def get_current_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials = Depends(bearer),
) -> Principal:
    """
    Canonical authentication dependency.
    """
    return _principal_from_token(request, creds.credentials)


def get_stream_principal(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer),
    token: Optional[str] = Query(default=None),
) -> Principal:
    """
    EventSource clients cannot set headers, so the stream also accepts ?token=.
    """
    raw = creds.credentials if creds else token
    if not raw:
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")
    return _principal_from_token(request, raw)

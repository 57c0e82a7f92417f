#app/schemas/notifications.py
from __future__ import annotations

from typing import Optional
from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: str
    type: str
    program_id: Optional[str] = None
    actor_member_id: Optional[str] = None
    title: str
    body: str
    created_at: Optional[str] = None


class AcknowledgeResponse(BaseModel):
    message: str

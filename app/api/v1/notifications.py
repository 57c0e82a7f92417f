from __future__ import annotations

import asyncio
import logging
import uuid
from typing import AsyncIterator, List

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.auth_deps import get_current_principal, get_stream_principal
from app.core.config import get_settings
from app.core.deps import get_live_registry, get_notification_service
from app.core.streaming import QueueConnection, sse_frame
from app.db.session import get_db
from app.policies.rbac import Principal
from app.schemas.notifications import AcknowledgeResponse, NotificationOut
from app.services.live_delivery import LiveDeliveryRegistry
from app.services.notification_service import NotificationService, build_notification_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications")


@router.get("/unacknowledged", response_model=List[NotificationOut])
def list_unacknowledged(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    svc: NotificationService = Depends(get_notification_service),
):
    rows = svc.list_unacknowledged(db, member_id=principal.member_id)
    return [build_notification_payload(n) for n in rows]


@router.post("/{notification_id}/acknowledge", response_model=AcknowledgeResponse)
def acknowledge(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    svc: NotificationService = Depends(get_notification_service),
):
    try:
        svc.acknowledge(db, notification_id=notification_id, member_id=principal.member_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {"message": "Notification acknowledged."}


async def event_stream(
    request: Request,
    registry: LiveDeliveryRegistry,
    member_id: uuid.UUID,
    *,
    ping_seconds: float,
    queue_size: int,
) -> AsyncIterator[str]:
    """
    ready -> (notification | ping)* until the client goes away.
    The connection is registered only while this generator runs.
    """
    conn = QueueConnection(asyncio.get_running_loop(), maxsize=queue_size)
    registry.register(member_id, conn)
    logger.info("[stream] opened member=%s", member_id)
    try:
        yield sse_frame("ready")
        while not conn.closed:
            if await request.is_disconnected():
                break
            frame = await conn.next_frame(timeout=ping_seconds)
            yield frame if frame is not None else sse_frame("ping")
    finally:
        conn.close()
        registry.unregister(member_id, conn)
        logger.info("[stream] closed member=%s", member_id)


@router.get("/stream")
async def stream(
    request: Request,
    principal: Principal = Depends(get_stream_principal),
    registry: LiveDeliveryRegistry = Depends(get_live_registry),
):
    settings = get_settings()
    return StreamingResponse(
        event_stream(
            request,
            registry,
            principal.member_id,
            ping_seconds=settings.notification_stream_ping_seconds,
            queue_size=settings.notification_stream_queue_size,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )

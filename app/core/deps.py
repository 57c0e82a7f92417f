# /app/core/deps.py
from fastapi import Depends, Request

from app.services.live_delivery import LiveDeliveryRegistry
from app.services.membership_lifecycle_service import MembershipLifecycleService
from app.services.notification_service import NotificationService


def get_live_registry(request: Request) -> LiveDeliveryRegistry:
    """
    The registry is created once per process in create_app.
    """
    return request.app.state.live_registry


def get_notification_service(
    registry: LiveDeliveryRegistry = Depends(get_live_registry),
) -> NotificationService:
    return NotificationService(registry)


def get_lifecycle_service(
    notifications: NotificationService = Depends(get_notification_service),
) -> MembershipLifecycleService:
    return MembershipLifecycleService(notifications)

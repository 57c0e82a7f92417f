from fastapi import APIRouter

from app.api.v1.health import router as health_router
from app.api.v1.auth import router as auth_router
from app.api.v1.members import router as members_router
from app.api.v1.programs import router as programs_router
from app.api.v1.notifications import router as notifications_router


v1_router = APIRouter()

# ------------------------------------------------------------------
# SYSTEM / CORE
# ------------------------------------------------------------------
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(auth_router, tags=["auth"])

# ------------------------------------------------------------------
# MEMBERSHIP LIFECYCLE
# ------------------------------------------------------------------
v1_router.include_router(programs_router, tags=["programs"])
v1_router.include_router(members_router, tags=["members"])

# ------------------------------------------------------------------
# NOTIFICATIONS
# ------------------------------------------------------------------
v1_router.include_router(notifications_router, tags=["notifications"])

# routers/health.py

from fastapi import APIRouter, Depends

from core.config import settings
from core.user_context import UserContext
from dependencies.auth import get_user_context

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/app
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    """
    Lightweight health check for uptime monitors.
    """
    return {
        "service": settings.PROJECT_NAME,
        "status": "ok",
    }


# -----------------------------------------------------
# GET /health/session
# Session / profile resolution state, no auth required
# -----------------------------------------------------
@router.get("/session", summary="Session resolution state")
async def health_session(ctx: UserContext = Depends(get_user_context)):
    return {
        "service": "Session",
        "status": "resolving" if ctx.loading else "ok",
        "session_loading": ctx.sessions.loading,
        "profile_loading": ctx.profiles.loading,
        "signed_in": ctx.session is not None,
        "profile_loaded": ctx.profile is not None,
    }

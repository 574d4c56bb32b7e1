# routers/views.py

"""
Guarded view gates. Each endpoint answers the question the matching page
asks before it renders: may this user see it, and with what state. Denials
surface as redirects (see GuardRedirect handling in main.py).
"""

from fastapi import APIRouter, Depends

from core.config import settings
from core.user_context import UserContext
from dependencies.auth import GuardRedirect, requires_poster, requires_session
from routers.me import profile_view


router = APIRouter(tags=["Views"])


PENDING_NEXT_STEPS = [
    "Our admin team will review your account",
    "You'll receive an email once approved",
    "Return here and click \"Check Status\"",
    "Once approved, you can access all features",
]


# -----------------------------------------------------
# GET /profile
# -----------------------------------------------------
@router.get("/profile", summary="Profile page state")
async def profile_page(ctx: UserContext = Depends(requires_session())):
    view = profile_view(ctx)
    view["show_rejection_reason"] = ctx.is_rejected() and ctx.rejection_reason() is not None
    return view


# -----------------------------------------------------
# GET /pending-approval
# -----------------------------------------------------
def pending_view(ctx: UserContext) -> dict:
    if ctx.is_rejected():
        title = "Account Rejected"
        subtitle = "Your account application was rejected"
    else:
        title = "Pending Approval"
        subtitle = "Your account is awaiting admin approval"

    profile = ctx.profile
    return {
        "title": title,
        "subtitle": subtitle,
        "name": profile.name if profile else None,
        "email": profile.email if profile else None,
        "display_type": ctx.user_display_type(),
        "is_pending": ctx.is_pending(),
        "is_rejected": ctx.is_rejected(),
        "rejection_reason": ctx.rejection_reason() if ctx.is_rejected() else None,
        "next_steps": PENDING_NEXT_STEPS if ctx.is_pending() else [],
        "can_check_status": ctx.is_pending(),
    }


@router.get("/pending-approval", summary="Pending approval page state")
async def pending_approval_page(ctx: UserContext = Depends(requires_session())):
    if ctx.profile is not None and ctx.is_approved():
        raise GuardRedirect(settings.HOME_PATH, reason="approved")
    return pending_view(ctx)


@router.post("/pending-approval/check", summary="Re-check approval status")
async def check_approval_status(ctx: UserContext = Depends(requires_session())):
    await ctx.refresh()
    view = pending_view(ctx)
    view["approved"] = ctx.profile is not None and ctx.is_approved()
    view["redirect_to"] = settings.HOME_PATH if view["approved"] else None
    return view


# -----------------------------------------------------
# GET /post-property
# -----------------------------------------------------
@router.get("/post-property", summary="Post property page state")
async def post_property_page(ctx: UserContext = Depends(requires_poster())):
    return {
        "display_type": ctx.user_display_type(),
        "can_post_property": True,
    }

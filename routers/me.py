from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ValidationError

from core.config import settings
from core.errors import UsersApiError, handle_api_error
from core.logging_config import logger
from core.user_context import UserContext
from dependencies.auth import current_session, get_bearer_token, requires_session
from models.enums import ProviderType, UserType
from models.user import UserCreate, UserUpdate


router = APIRouter(
    prefix="/me",
    tags=["Me"],
)


def profile_view(ctx: UserContext) -> dict:
    profile = ctx.profile
    return {
        "profile": profile.model_dump(by_alias=True, mode="json") if profile else None,
        "display_type": ctx.user_display_type(),
        "capabilities": ctx.capabilities(),
        "rejection_reason": ctx.rejection_reason(),
        "loading": ctx.loading,
    }


# ============================================================
# CURRENT PROFILE
# ============================================================
@router.get("", summary="Current profile and capabilities")
async def read_me(ctx: UserContext = Depends(requires_session())):
    return profile_view(ctx)


@router.post("/refresh", summary="Re-fetch the current profile")
async def refresh_me(ctx: UserContext = Depends(requires_session())):
    await ctx.refresh()
    return profile_view(ctx)


# ============================================================
# SELF-EDIT
# ============================================================
@router.patch("", summary="Update current user profile")
async def update_me(
    payload: UserUpdate,
    ctx: UserContext = Depends(requires_session()),
    token: str = Depends(get_bearer_token),
):
    """
    Users can update their own name, phone and address fields.
    Role and approval fields are only changed by admins.
    """
    session = current_session(ctx)
    if not payload.model_dump(exclude_none=True):
        return profile_view(ctx)

    try:
        await ctx.api.update_user_profile(session.uid, payload, token)
    except UsersApiError as e:
        raise handle_api_error(e, "Failed to update profile")

    logger.info(f"User {session.uid} updated their profile")
    await ctx.refresh()
    return profile_view(ctx)


# ============================================================
# REGISTER (API record for a freshly signed-up identity)
# ============================================================
class RegisterRequest(BaseModel):
    name: str
    phone: Optional[str] = None
    city: Optional[str] = None
    user_type: UserType = UserType.seeker
    provider_type: Optional[ProviderType] = None

    agency_name: Optional[str] = None
    license_number: Optional[str] = None
    rera_number: Optional[str] = None
    company_name: Optional[str] = None
    gst_number: Optional[str] = None


@router.post("/register", summary="Create the marketplace user record")
async def register_me(payload: RegisterRequest, ctx: UserContext = Depends(requires_session())):
    session = current_session(ctx)
    try:
        user = UserCreate(
            external_id=session.uid,
            email=session.email,
            **payload.model_dump(),
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    try:
        result = await ctx.api.create_user(user)
    except UsersApiError as e:
        raise handle_api_error(e, "Failed to create account")

    await ctx.refresh()

    if result.needs_approval:
        message = f"{ctx.user_display_type()} account created! Pending admin approval."
        redirect_to = settings.PENDING_APPROVAL_PATH
    else:
        message = "Account created successfully!"
        redirect_to = settings.HOME_PATH

    return {
        "success": result.success,
        "needs_approval": result.needs_approval,
        "message": message,
        "redirect_to": redirect_to,
    }

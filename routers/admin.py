from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from core.errors import UsersApiError, handle_api_error
from core.logging_config import logger
from core.user_context import UserContext
from core.user_filters import compute_admin_stats, filter_users
from dependencies.auth import get_bearer_token, requires_admin
from models.enums import ApprovalStatus, ProviderType, UserType
from models.user import AdminStats, Profile, UserFilters


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
)


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


async def load_users(ctx: UserContext, token: str) -> List[Profile]:
    try:
        return await ctx.api.get_all_users(token)
    except UsersApiError as e:
        raise handle_api_error(e, "Failed to fetch admin data")


def dump_users(users: List[Profile]) -> list:
    return [u.model_dump(by_alias=True, mode="json") for u in users]


# -----------------------------------------------------
# GET /admin (dashboard)
# -----------------------------------------------------
@router.get("", summary="Admin dashboard")
async def dashboard(
    ctx: UserContext = Depends(requires_admin()),
    token: str = Depends(get_bearer_token),
):
    users = await load_users(ctx, token)
    pending = filter_users(users, UserFilters(approval_status=ApprovalStatus.pending))
    return {
        "stats": compute_admin_stats(users),
        "pending_users": dump_users(pending),
    }


# -----------------------------------------------------
# GET /admin/users
# -----------------------------------------------------
@router.get("/users", summary="List users with filters")
async def list_users(
    user_type: Optional[UserType] = Query(None),
    provider_type: Optional[ProviderType] = Query(None),
    approval_status: Optional[ApprovalStatus] = Query(None),
    search: Optional[str] = Query(None),
    ctx: UserContext = Depends(requires_admin()),
    token: str = Depends(get_bearer_token),
):
    filters = UserFilters(
        user_type=user_type,
        provider_type=provider_type,
        approval_status=approval_status,
        search=search,
    )
    users = filter_users(await load_users(ctx, token), filters)
    return {"data": dump_users(users), "count": len(users)}


@router.get("/stats", response_model=AdminStats, summary="User statistics")
async def stats(
    ctx: UserContext = Depends(requires_admin()),
    token: str = Depends(get_bearer_token),
):
    return compute_admin_stats(await load_users(ctx, token))


# -----------------------------------------------------
# Moderation actions
# -----------------------------------------------------
async def after_action(ctx: UserContext, action: str, user_id: str, body) -> dict:
    logger.info(f"Admin action {action} on user {user_id}")
    # The acting admin's own record may be the one that changed
    await ctx.refresh()
    return {"success": True, "action": action, "user_id": user_id, "result": body}


@router.patch("/users/{user_id}/approve", summary="Approve a provider")
async def approve(
    user_id: str,
    ctx: UserContext = Depends(requires_admin()),
    token: str = Depends(get_bearer_token),
):
    try:
        body = await ctx.api.approve_user(user_id, token)
    except UsersApiError as e:
        raise handle_api_error(e, "Failed to approve user")
    return await after_action(ctx, "approve", user_id, body)


@router.patch("/users/{user_id}/reject", summary="Reject a provider")
async def reject(
    user_id: str,
    payload: RejectRequest,
    ctx: UserContext = Depends(requires_admin()),
    token: str = Depends(get_bearer_token),
):
    try:
        body = await ctx.api.reject_user(user_id, payload.reason.strip(), token)
    except UsersApiError as e:
        raise handle_api_error(e, "Failed to reject user")
    return await after_action(ctx, "reject", user_id, body)


@router.patch("/users/{user_id}/toggle-status", summary="Activate / deactivate a user")
async def toggle_status(
    user_id: str,
    ctx: UserContext = Depends(requires_admin()),
    token: str = Depends(get_bearer_token),
):
    try:
        body = await ctx.api.toggle_user_status(user_id, token)
    except UsersApiError as e:
        raise handle_api_error(e, "Failed to update user status")
    return await after_action(ctx, "toggle-status", user_id, body)


@router.delete("/users/{user_id}", summary="Delete a user")
async def delete(
    user_id: str,
    ctx: UserContext = Depends(requires_admin()),
    token: str = Depends(get_bearer_token),
):
    try:
        body = await ctx.api.delete_user(user_id, token)
    except UsersApiError as e:
        raise handle_api_error(e, "Failed to delete user")
    return await after_action(ctx, "delete", user_id, body)

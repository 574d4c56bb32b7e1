from typing import Optional
from fastapi import Depends, Request

from core.config import settings
from core.guard import DenialReason, GuardDecision, GuardState, deny
from core.logging_config import logger
from core.roles import POST_BLOCKED_PENDING
from core.user_context import UserContext
from models.auth import Session


# ============================================================
# Guard redirect (rendered by main.py as 303 + notice)
# ============================================================
class GuardRedirect(Exception):
    def __init__(self, redirect_to: str, notice: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(redirect_to)
        self.redirect_to = redirect_to
        self.notice = notice
        self.reason = reason

    @classmethod
    def from_decision(cls, decision: GuardDecision) -> "GuardRedirect":
        return cls(
            redirect_to=decision.redirect_to or settings.LOGIN_PATH,
            notice=decision.notice,
            reason=str(decision.reason) if decision.reason else None,
        )


# ============================================================
# The application-wide user context
# ============================================================
def get_user_context(request: Request) -> UserContext:
    return request.app.state.user_context


def current_session(ctx: UserContext) -> Session:
    """
    The session a handler acts for, read once. Handlers keep the returned
    value across awaits; a sign-out in between leaves it untouched.
    """
    session = ctx.session
    if session is None:
        raise GuardRedirect.from_decision(deny(DenialReason.no_session))
    return session


async def run_guard(ctx: UserContext, admin_only: bool = False) -> GuardDecision:
    with ctx.guard(admin_only=admin_only) as guard:
        decision = await guard.wait()

    if decision.state != GuardState.granted:
        logger.info(f"Route guard denied: reason={decision.reason}, admin_only={admin_only}")
        raise GuardRedirect.from_decision(decision)
    return decision


# ============================================================
# SESSION CHECKER (any signed-in user)
# ============================================================
def requires_session():
    async def checker(ctx: UserContext = Depends(get_user_context)) -> UserContext:
        await run_guard(ctx)
        return ctx
    return checker


# ============================================================
# ADMIN CHECKER
# ============================================================
def requires_admin():
    async def checker(ctx: UserContext = Depends(get_user_context)) -> UserContext:
        await run_guard(ctx, admin_only=True)
        return ctx
    return checker


# ============================================================
# POSTING CHECKER (owners, approved agents/builders)
# ============================================================
def requires_poster():
    async def checker(ctx: UserContext = Depends(requires_session())) -> UserContext:
        block = ctx.post_property_block()
        if block is None:
            return ctx

        if block == POST_BLOCKED_PENDING:
            raise GuardRedirect(
                settings.PENDING_APPROVAL_PATH,
                "Your account is pending admin approval. Once approved, you can post properties.",
                reason="approval_pending",
            )
        raise GuardRedirect(
            settings.PROVIDER_SIGNUP_PATH,
            "Only property owners, agents, and builders can post properties. Please create a provider account.",
            reason="not_provider",
        )
    return checker


# ============================================================
# BEARER TOKEN for calls made on the user's behalf
# ============================================================
async def get_bearer_token(ctx: UserContext = Depends(get_user_context)) -> str:
    token = await ctx.get_token()
    if not token:
        raise GuardRedirect.from_decision(deny(DenialReason.no_session))
    return token

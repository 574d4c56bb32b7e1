# core/guard.py

"""
Route guard.

A guard is resolving while the session or the profile is still loading,
then denied or granted. It re-evaluates on every session/profile change for
as long as it is open, so a sign-out or a refreshed profile moves it again.

Denials keep their reason because the caller sends the user somewhere
different for each:
  • no_session / timeout   → login page
  • insufficient_role      → home page with an "admin only" notice
"""

import asyncio
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel

from core import roles
from core.config import settings
from core.logging_config import logger
from models.enums import BaseStrEnum
from models.user import Profile

if TYPE_CHECKING:
    from core.user_context import UserContext


class GuardState(BaseStrEnum):
    resolving = "resolving"
    denied = "denied"
    granted = "granted"


class DenialReason(BaseStrEnum):
    no_session = "no_session"
    insufficient_role = "insufficient_role"
    timeout = "timeout"


DENIAL_NOTICES = {
    DenialReason.no_session: "Please log in to continue.",
    DenialReason.insufficient_role: "Access denied. Admin only.",
    DenialReason.timeout: "We could not confirm your account. Please log in again.",
}


class GuardDecision(BaseModel):
    state: GuardState
    reason: Optional[DenialReason] = None
    redirect_to: Optional[str] = None
    notice: Optional[str] = None

    @property
    def granted(self) -> bool:
        return self.state == GuardState.granted


RESOLVING = GuardDecision(state=GuardState.resolving)
GRANTED = GuardDecision(state=GuardState.granted)


def deny(reason: DenialReason) -> GuardDecision:
    if reason == DenialReason.insufficient_role:
        redirect_to = settings.HOME_PATH
    else:
        redirect_to = settings.LOGIN_PATH
    return GuardDecision(
        state=GuardState.denied,
        reason=reason,
        redirect_to=redirect_to,
        notice=DENIAL_NOTICES[reason],
    )


def evaluate_guard(
    session_loading: bool,
    profile_loading: bool,
    has_session: bool,
    profile: Optional[Profile],
    admin_only: bool = False,
) -> GuardDecision:
    if session_loading or profile_loading:
        return RESOLVING
    if not has_session:
        return deny(DenialReason.no_session)
    if admin_only and not roles.is_admin(profile):
        return deny(DenialReason.insufficient_role)
    return GRANTED


class RouteGuard:
    def __init__(self, context: "UserContext", admin_only: bool = False):
        self._context = context
        self.admin_only = admin_only
        self._changed = asyncio.Event()
        self.decision = self._evaluate()
        self._unsubscribe = context.subscribe(self._reevaluate)

    @property
    def state(self) -> GuardState:
        return self.decision.state

    def _evaluate(self) -> GuardDecision:
        ctx = self._context
        return evaluate_guard(
            session_loading=ctx.sessions.loading,
            profile_loading=ctx.profiles.loading,
            has_session=ctx.session is not None,
            profile=ctx.profile,
            admin_only=self.admin_only,
        )

    def _reevaluate(self):
        self.decision = self._evaluate()
        self._changed.set()

    async def wait(self, timeout: Optional[float] = None) -> GuardDecision:
        """
        Wait until the guard leaves resolving. Still resolving at the
        deadline means denied/timeout.
        """
        if timeout is None:
            timeout = settings.GUARD_RESOLVE_TIMEOUT_SECONDS
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            self._changed.clear()
            if self.decision.state != GuardState.resolving:
                return self.decision

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning(f"Route guard still resolving after {timeout}s, denying")
                return deny(DenialReason.timeout)

            try:
                await asyncio.wait_for(self._changed.wait(), remaining)
            except asyncio.TimeoutError:
                pass

    def close(self):
        self._unsubscribe()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

# core/user_context.py

"""
The one object views depend on for "who is signed in and what may they do".

Built once at application start and handed to consumers explicitly
(app.state + a FastAPI dependency). Views use the predicates below and never
look at raw role fields.
"""

from typing import Optional

from core import roles
from core.config import Settings, settings as default_settings
from core.guard import RouteGuard
from core.identity import IdentityProvider, SupabaseIdentityProvider, Unsubscribe
from core.logging_config import logger
from core.profile_resolver import ProfileResolver
from core.session import Listener, SessionHolder
from core.supabase_client import get_supabase_client
from core.users_api import UsersApi
from models.auth import Session
from models.user import Profile


class UserContext:
    def __init__(self, identity: IdentityProvider, api: UsersApi, settings: Settings = default_settings):
        self.identity = identity
        self.api = api
        self.sessions = SessionHolder(identity)
        self.profiles = ProfileResolver(
            self.sessions,
            api,
            timeout_seconds=settings.PROFILE_FETCH_TIMEOUT_SECONDS,
        )

    # ---------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------
    async def start(self):
        await self.sessions.start()

    async def shutdown(self):
        self.profiles.close()
        self.sessions.shutdown()
        await self.api.aclose()

    # ---------------------------------------------------------
    # State
    # ---------------------------------------------------------
    @property
    def session(self) -> Optional[Session]:
        return self.sessions.session

    @property
    def profile(self) -> Optional[Profile]:
        return self.profiles.profile

    @property
    def loading(self) -> bool:
        return self.sessions.loading or self.profiles.loading

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Called after any session or profile change."""
        unsubscribe_session = self.sessions.subscribe(listener)
        unsubscribe_profile = self.profiles.subscribe(listener)

        def unsubscribe():
            unsubscribe_session()
            unsubscribe_profile()

        return unsubscribe

    async def refresh(self) -> Optional[Profile]:
        return await self.profiles.refresh()

    async def get_token(self) -> Optional[str]:
        return await self.sessions.get_token()

    async def sign_out(self):
        await self.sessions.sign_out()

    def guard(self, admin_only: bool = False) -> RouteGuard:
        return RouteGuard(self, admin_only=admin_only)

    # ---------------------------------------------------------
    # Classifier
    # ---------------------------------------------------------
    def is_admin(self) -> bool:
        return roles.is_admin(self.profile)

    def is_seeker(self) -> bool:
        return roles.is_seeker(self.profile)

    def is_provider(self) -> bool:
        return roles.is_provider(self.profile)

    def is_approved(self) -> bool:
        return roles.is_approved(self.profile)

    def is_pending(self) -> bool:
        return roles.is_pending(self.profile)

    def is_rejected(self) -> bool:
        return roles.is_rejected(self.profile)

    def needs_approval(self) -> bool:
        return roles.needs_approval(self.profile)

    def can_post_property(self) -> bool:
        return roles.can_post_property(self.profile)

    def rejection_reason(self) -> Optional[str]:
        return roles.rejection_reason(self.profile)

    def user_display_type(self) -> str:
        return roles.user_display_type(self.profile)

    def post_property_block(self) -> Optional[str]:
        return roles.post_property_block(self.profile)

    def capabilities(self) -> dict:
        return {
            "is_admin": self.is_admin(),
            "is_seeker": self.is_seeker(),
            "is_provider": self.is_provider(),
            "is_approved": self.is_approved(),
            "is_pending": self.is_pending(),
            "is_rejected": self.is_rejected(),
            "needs_approval": self.needs_approval(),
            "can_post_property": self.can_post_property(),
        }


# ============================================================
# Factory
# ============================================================
def build_user_context(
    settings: Settings = default_settings,
    identity: Optional[IdentityProvider] = None,
    api: Optional[UsersApi] = None,
) -> UserContext:
    if identity is None:
        client = get_supabase_client()
        if client is None:
            raise RuntimeError("Supabase client not configured")
        identity = SupabaseIdentityProvider(client, settings.OAUTH_REDIRECT_URL)

    if api is None:
        api = UsersApi(settings.API_URL, timeout=settings.PROFILE_FETCH_TIMEOUT_SECONDS)

    logger.info(f"User context ready (API: {settings.API_URL})")
    return UserContext(identity, api, settings)

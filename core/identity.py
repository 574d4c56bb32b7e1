# core/identity.py

"""
Identity provider boundary.

The rest of the shell only needs three things from the identity provider:
a change subscription, a bearer token and sign-out. Those are described by
``IdentityProvider``. ``SupabaseIdentityProvider`` implements it on top of
supabase-py's GoTrue client and also carries the account operations the
login/sign-up pages use (sign-up, sign-in, OAuth, password reset, resend
verification). Every account operation returns an ``AuthResult`` instead of
raising, so the routers can hand the message straight to the user.
"""

from typing import Any, Callable, Optional, Protocol

from supabase import Client

from core.errors import auth_error_message
from core.logging_config import logger
from models.auth import AuthResult, Session
from models.enums import OAuthProvider


SessionCallback = Callable[[Optional[Session]], None]
Unsubscribe = Callable[[], None]


class IdentityProvider(Protocol):
    def subscribe(self, callback: SessionCallback) -> Unsubscribe: ...

    def get_token(self) -> Optional[str]: ...

    def sign_out(self) -> None: ...


# ============================================================
# GoTrue session → Session
# ============================================================
def to_session(raw: Any) -> Optional[Session]:
    """Convert a gotrue Session (or None) into our read-only Session."""
    if raw is None or getattr(raw, "user", None) is None:
        return None

    user = raw.user
    metadata = getattr(user, "user_metadata", None) or {}

    return Session(
        access_token=raw.access_token,
        uid=str(user.id),
        email=getattr(user, "email", None),
        email_verified=getattr(user, "email_confirmed_at", None) is not None,
        display_name=metadata.get("full_name") or metadata.get("display_name"),
    )


class SupabaseIdentityProvider:
    def __init__(self, client: Client, oauth_redirect_url: Optional[str] = None):
        self._auth = client.auth
        self._oauth_redirect_url = oauth_redirect_url

    # ---------------------------------------------------------
    # IdentityProvider protocol
    # ---------------------------------------------------------
    def subscribe(self, callback: SessionCallback) -> Unsubscribe:
        """
        Register for session changes. The current session is delivered
        right away so subscribers always get a first definitive state.

        Blocking: reading the stored session may refresh the token over
        the network. SessionHolder.start calls this from a worker thread.
        """
        subscription = self._auth.on_auth_state_change(
            lambda event, raw: callback(to_session(raw))
        )
        callback(self._current_session())
        return subscription.unsubscribe

    def get_token(self) -> Optional[str]:
        session = self._auth.get_session()  # refreshes an expired access token
        if session is None:
            return None
        return session.access_token

    def sign_out(self) -> None:
        self._auth.sign_out()

    def _current_session(self) -> Optional[Session]:
        try:
            return to_session(self._auth.get_session())
        except Exception as e:
            logger.warning(f"Could not read stored session: {type(e).__name__}")
            return None

    # ---------------------------------------------------------
    # Account operations
    # ---------------------------------------------------------
    def sign_up(self, email: str, password: str, display_name: str) -> AuthResult:
        try:
            self._auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"full_name": display_name}},
            })
        except Exception as e:
            return self._failure(e, "sign_up")

        return AuthResult(
            success=True,
            message="Account created! Please check your email for verification.",
        )

    def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            response = self._auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            return self._failure(e, "sign_in")

        if not response.session or not response.session.access_token:
            return AuthResult(
                success=False,
                message="Incorrect email or password.",
                error_code="invalid_credentials",
            )

        return AuthResult(success=True, message="Login successful!")

    def oauth_url(self, provider: OAuthProvider) -> AuthResult:
        options: dict = {}
        if provider == OAuthProvider.google:
            options["query_params"] = {"prompt": "select_account"}
        else:
            options["query_params"] = {"display": "popup"}
        if self._oauth_redirect_url:
            options["redirect_to"] = self._oauth_redirect_url

        try:
            response = self._auth.sign_in_with_oauth(
                {"provider": provider.value, "options": options}
            )
        except Exception as e:
            return self._failure(e, f"oauth:{provider}")

        return AuthResult(
            success=True,
            message=f"Continue with {provider.value.capitalize()}",
            url=response.url,
        )

    def reset_password(self, email: str) -> AuthResult:
        try:
            self._auth.reset_password_for_email(email)
        except Exception as e:
            return self._failure(e, "reset_password")

        return AuthResult(
            success=True,
            message="Password reset email sent! Check your inbox.",
        )

    def resend_verification(self, session: Optional[Session]) -> AuthResult:
        if session is None or not session.email:
            return AuthResult(success=False, message="No user is currently signed in.")

        if session.email_verified:
            return AuthResult(success=False, message="Email is already verified.")

        try:
            self._auth.resend({"type": "signup", "email": session.email})
        except Exception as e:
            return self._failure(e, "resend_verification")

        return AuthResult(success=True, message="Verification email sent!")

    @staticmethod
    def _failure(error: Exception, operation: str) -> AuthResult:
        code, message = auth_error_message(error)
        logger.warning(f"Identity operation {operation} failed: code={code}")
        return AuthResult(success=False, message=message, error_code=code)

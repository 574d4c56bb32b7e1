import asyncio

from fastapi import APIRouter, Depends

from core.config import settings
from core.logging_config import logger
from core.user_context import UserContext
from dependencies.auth import get_user_context
from models.auth import AuthResult, EmailRequest, LoginRequest, SignupRequest
from models.enums import OAuthProvider


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


# ============================================================
# SIGN UP (email + password, verification email is sent)
# ============================================================
@router.post("/signup", response_model=AuthResult, summary="Create an identity-provider account")
async def signup(payload: SignupRequest, ctx: UserContext = Depends(get_user_context)):
    email = payload.email.strip().lower()
    result = await asyncio.to_thread(
        ctx.identity.sign_up, email, payload.password, payload.display_name.strip()
    )
    if result.success:
        logger.info(f"Sign-up succeeded for {email}")
    return result


# ============================================================
# LOGIN
# ============================================================
@router.post("/login", response_model=AuthResult, summary="Sign in with email and password")
async def login(payload: LoginRequest, ctx: UserContext = Depends(get_user_context)):
    email = payload.email.strip().lower()

    # The provider's sign-in callback is queued on the loop before we resume
    result = await asyncio.to_thread(ctx.identity.sign_in, email, payload.password)
    if not result.success:
        logger.warning(f"Login attempt failed for {email}: {result.error_code}")
        return result

    with ctx.guard() as guard:
        await guard.wait()

    result.redirect_to = settings.ADMIN_PATH if ctx.is_admin() else settings.HOME_PATH
    return result


# ============================================================
# OAUTH (returns the provider URL the front end opens)
# ============================================================
@router.get("/oauth/{provider}", response_model=AuthResult, summary="Start OAuth sign-in")
async def oauth(provider: OAuthProvider, ctx: UserContext = Depends(get_user_context)):
    return await asyncio.to_thread(ctx.identity.oauth_url, provider)


# ============================================================
# LOGOUT
# ============================================================
@router.post("/logout", response_model=AuthResult, summary="Sign out")
async def logout(ctx: UserContext = Depends(get_user_context)):
    await ctx.sign_out()
    return AuthResult(
        success=True,
        message="Logged out successfully!",
        redirect_to=settings.LOGIN_PATH,
    )


# ============================================================
# PASSWORD RESET / VERIFICATION EMAIL
# ============================================================
@router.post("/forgot-password", response_model=AuthResult, summary="Send a password reset email")
async def forgot_password(payload: EmailRequest, ctx: UserContext = Depends(get_user_context)):
    email = payload.email.strip().lower()
    logger.info(f"Password reset requested: email={email}")
    return await asyncio.to_thread(ctx.identity.reset_password, email)


@router.post("/resend-verification", response_model=AuthResult, summary="Resend the verification email")
async def resend_verification(ctx: UserContext = Depends(get_user_context)):
    return await asyncio.to_thread(ctx.identity.resend_verification, ctx.session)


# ============================================================
# SESSION STATE
# ============================================================
@router.get("/session", summary="Current session state")
async def session_state(ctx: UserContext = Depends(get_user_context)):
    session = ctx.session
    return {
        "loading": ctx.sessions.loading,
        "is_authenticated": session is not None,
        "is_email_verified": bool(session and session.email_verified),
        "uid": session.uid if session else None,
        "email": session.email if session else None,
        "display_name": session.display_name if session else None,
    }

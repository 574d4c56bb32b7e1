# core/errors.py

from typing import Any, Optional
from fastapi import HTTPException

from core.logging_config import logger


# ============================================================
# Identity provider (Supabase Auth / GoTrue) errors
# ============================================================
AUTH_ERROR_MESSAGES = {
    "user_already_exists": "This email is already registered. Try logging in instead.",
    "email_exists": "This email is already registered. Try logging in instead.",
    "email_address_invalid": "Invalid email address.",
    "validation_failed": "Invalid email address.",
    "weak_password": "Password should be at least 6 characters.",
    "user_not_found": "No account found with this email.",
    "invalid_credentials": "Incorrect email or password.",
    "email_not_confirmed": "Please verify your email before logging in.",
    "over_request_rate_limit": "Too many failed attempts. Try again later.",
    "over_email_send_rate_limit": "Too many failed attempts. Try again later.",
    "network_error": "Network error. Check your internet connection.",
    "identity_already_exists": "An account already exists with this email using a different sign-in method.",
    "reauthentication_needed": "Please log in again to perform this action.",
    "session_not_found": "Please log in again to perform this action.",
}

DEFAULT_AUTH_ERROR = "An unexpected error occurred."


def extract_auth_error(error: Exception) -> tuple[Optional[str], str]:
    """
    Safely extract (code, readable message) from Supabase Auth errors.
    Handles:
      • AuthApiError (has .code and .message)
      • AuthRetryableError / httpx transport errors
      • Generic Python exceptions
    """
    code = getattr(error, "code", None)
    if code is not None and not isinstance(code, str):
        code = str(code)

    if code is None and type(error).__name__ in ("AuthRetryableError", "ConnectError", "ReadTimeout"):
        code = "network_error"

    message = getattr(error, "message", None)
    if not message and getattr(error, "args", None):
        message = str(error.args[0])
    if not message:
        message = str(error) or DEFAULT_AUTH_ERROR

    return code, str(message)


def auth_error_message(error: Exception) -> tuple[Optional[str], str]:
    """
    Map an identity-provider error to the message shown to the user.
    Unknown codes fall back to the provider's own message.
    """
    code, raw = extract_auth_error(error)
    return code, AUTH_ERROR_MESSAGES.get(code or "", raw or DEFAULT_AUTH_ERROR)


# ============================================================
# Marketplace users API errors
# ============================================================
class UsersApiError(Exception):
    """
    Raised by core.users_api for transport failures, non-2xx
    responses and payloads that do not parse.
    status_code is None when no response was received.
    """

    def __init__(self, detail: Any, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code

    def __str__(self):
        if self.status_code is None:
            return f"{self.detail}"
        return f"HTTP {self.status_code}: {self.detail}"


def extract_api_error(error: Exception) -> str:
    """Readable detail out of a UsersApiError (or anything else)."""
    detail = getattr(error, "detail", None)
    if isinstance(detail, dict):
        return str(detail.get("message") or detail.get("detail") or detail)
    if detail:
        return str(detail)
    return str(error) or "Unknown API error"


def handle_api_error(error: Exception, operation: str = "API request") -> HTTPException:
    """
    Convert a users API failure into an HTTPException for the shell's own routes.
    Returns HTTPException (doesn't raise) so caller can customize or re-raise.
    """
    detail = extract_api_error(error)
    status_code = getattr(error, "status_code", None)
    logger.error(f"{operation}: {detail}")

    if status_code in (400, 404, 409, 422):
        return HTTPException(status_code=status_code, detail=f"{operation}: {detail}")
    if status_code in (401, 403):
        return HTTPException(status_code=403, detail=f"{operation}: not permitted")
    return HTTPException(status_code=502, detail=f"{operation} failed")

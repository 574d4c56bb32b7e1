from typing import Optional
from pydantic import BaseModel, EmailStr


# -----------------------------------------------------
# LOGIN / SIGNUP REQUESTS (Supabase email/password)
# -----------------------------------------------------
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SignupRequest(BaseModel):
    email: EmailStr
    password: str
    display_name: str


class EmailRequest(BaseModel):
    email: EmailStr


# -----------------------------------------------------
# SESSION (read-only view of the identity provider session)
# -----------------------------------------------------
class Session(BaseModel):
    access_token: str
    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    display_name: Optional[str] = None


# -----------------------------------------------------
# AUTH RESULT (every identity operation returns one)
# -----------------------------------------------------
class AuthResult(BaseModel):
    success: bool
    message: str
    error_code: Optional[str] = None
    url: Optional[str] = None          # OAuth sign-in only
    redirect_to: Optional[str] = None  # post-login destination

from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "FindAbode Client"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Marketplace REST API
    # -------------------------------------------------
    API_URL: str = Field("http://localhost:5000/api", env="API_URL")

    # Profile fetch is bounded; a timeout counts as a failed fetch
    PROFILE_FETCH_TIMEOUT_SECONDS: float = Field(10.0, env="PROFILE_FETCH_TIMEOUT_SECONDS")

    # Guard gives up waiting on session/profile resolution after this long
    GUARD_RESOLVE_TIMEOUT_SECONDS: float = Field(15.0, env="GUARD_RESOLVE_TIMEOUT_SECONDS")

    # -------------------------------------------------
    # Supabase (identity provider, anon key only)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = Field(None, env="SUPABASE_URL")
    SUPABASE_ANON_KEY: Optional[str] = Field(None, env="SUPABASE_ANON_KEY")

    # Where OAuth providers send the browser back to
    OAUTH_REDIRECT_URL: Optional[str] = Field(None, env="OAUTH_REDIRECT_URL")

    # -------------------------------------------------
    # Redirect destinations used by the route guard
    # -------------------------------------------------
    LOGIN_PATH: str = "/login"
    HOME_PATH: str = "/"
    ADMIN_PATH: str = "/admin"
    PENDING_APPROVAL_PATH: str = "/pending-approval"
    PROVIDER_SIGNUP_PATH: str = "/signup/provider-type"

    # -------------------------------------------------
    # Front end origins (CORS)
    # -------------------------------------------------
    FRONTEND_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# Strip trailing slashes so url joins stay predictable
settings.API_URL = settings.API_URL.rstrip("/")
settings.FRONTEND_ORIGINS = sorted({o.rstrip("/") for o in settings.FRONTEND_ORIGINS})

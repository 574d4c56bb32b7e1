# models/user.py

from typing import Optional, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from models.enums import ApprovalStatus, ProviderType, UserType


class ApiModel(BaseModel):
    """
    The marketplace API speaks camelCase; Python code uses snake_case.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ===============================================================
# PROFILE (server-side business record for a session identity)
# ===============================================================

class Profile(ApiModel):
    """
    Mirrors GET /users/profile/{externalId}.

    Role fields are only meant to be read through core.roles.
    """
    id: Optional[Union[int, str]] = None
    external_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("externalId", "firebaseUid", "external_id"),
    )
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None

    user_type: UserType
    provider_type: Optional[ProviderType] = None
    approval_status: Optional[ApprovalStatus] = None
    rejection_reason: Optional[str] = None

    is_verified: bool = False
    is_active: bool = True

    # Provider extras (agent / builder sign-up forms)
    agency_name: Optional[str] = None
    license_number: Optional[str] = None
    rera_number: Optional[str] = None
    company_name: Optional[str] = None
    gst_number: Optional[str] = None

    @model_validator(mode="after")
    def check_role_fields(self):
        if self.user_type == UserType.provider:
            if self.provider_type is None:
                raise ValueError("providerType is required for provider accounts")
            if self.approval_status is None:
                # Owners are approved on creation, agents/builders wait for an admin
                self.approval_status = (
                    ApprovalStatus.approved
                    if self.provider_type == ProviderType.owner
                    else ApprovalStatus.pending
                )
        else:
            if self.provider_type is not None:
                raise ValueError("providerType is only allowed for provider accounts")
            # Approval does not apply to seekers/admins and must never block them
            self.approval_status = ApprovalStatus.approved
        return self


# ===============================================================
# REGISTRATION / SELF-EDIT PAYLOADS
# ===============================================================

class UserCreate(ApiModel):
    """
    Body of POST /users/create, sent right after identity-provider sign-up.
    """
    external_id: str = Field(..., serialization_alias="firebaseUid")
    email: EmailStr
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

    @model_validator(mode="after")
    def check_provider_type(self):
        if self.user_type == UserType.admin:
            raise ValueError("admin accounts cannot be self-registered")
        if (self.user_type == UserType.provider) != (self.provider_type is not None):
            raise ValueError("providerType must be set for providers and only for providers")
        return self


class UserUpdate(ApiModel):
    """
    Partial self-service update of the current user's profile.
    """
    name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None


class RegistrationResult(ApiModel):
    """Response of POST /users/create."""
    success: bool = False
    needs_approval: bool = False
    message: Optional[str] = None


# ===============================================================
# ADMIN LISTING
# ===============================================================

class UserFilters(ApiModel):
    user_type: Optional[UserType] = None
    provider_type: Optional[ProviderType] = None
    approval_status: Optional[ApprovalStatus] = None
    search: Optional[str] = None


class AdminStats(BaseModel):
    total_users: int = 0
    pending_users: int = 0
    total_agents: int = 0
    total_builders: int = 0

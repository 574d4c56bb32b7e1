# core/roles.py

"""
Role / capability classifier.

Every role check in the shell goes through these functions. Each one is
total: for a missing profile it returns the most restrictive answer.
"""

from typing import Optional

from models.enums import ApprovalStatus, ProviderType, UserType
from models.user import Profile


# ============================================================
# Role
# ============================================================
def is_admin(profile: Optional[Profile]) -> bool:
    return profile is not None and profile.user_type == UserType.admin


def is_seeker(profile: Optional[Profile]) -> bool:
    return profile is not None and profile.user_type == UserType.seeker


def is_provider(profile: Optional[Profile]) -> bool:
    return profile is not None and profile.user_type == UserType.provider


def is_owner(profile: Optional[Profile]) -> bool:
    return is_provider(profile) and profile.provider_type == ProviderType.owner


def is_agent(profile: Optional[Profile]) -> bool:
    return is_provider(profile) and profile.provider_type == ProviderType.agent


def is_builder(profile: Optional[Profile]) -> bool:
    return is_provider(profile) and profile.provider_type == ProviderType.builder


# ============================================================
# Approval status
# ============================================================
def is_approved(profile: Optional[Profile]) -> bool:
    return profile is not None and profile.approval_status == ApprovalStatus.approved


def is_pending(profile: Optional[Profile]) -> bool:
    return profile is not None and profile.approval_status == ApprovalStatus.pending


def is_rejected(profile: Optional[Profile]) -> bool:
    return profile is not None and profile.approval_status == ApprovalStatus.rejected


def rejection_reason(profile: Optional[Profile]) -> Optional[str]:
    """The reason exactly as the API sent it, or None."""
    if profile is None:
        return None
    return profile.rejection_reason


# ============================================================
# Capabilities
# ============================================================
def needs_approval(profile: Optional[Profile]) -> bool:
    """Agents and builders go through admin moderation; owners do not."""
    return is_agent(profile) or is_builder(profile)


def can_post_property(profile: Optional[Profile]) -> bool:
    if is_owner(profile):
        return True
    return is_provider(profile) and is_approved(profile)


# ============================================================
# Display
# ============================================================
PROVIDER_DISPLAY_TYPES = {
    ProviderType.owner: "Property Owner",
    ProviderType.agent: "Real Estate Agent",
    ProviderType.builder: "Builder/Developer",
}


def user_display_type(profile: Optional[Profile]) -> str:
    if is_admin(profile):
        return "Admin"
    if is_seeker(profile):
        return "Seeker"
    if is_provider(profile):
        return PROVIDER_DISPLAY_TYPES.get(profile.provider_type, "Provider")
    return "User"


# ============================================================
# Posting gate
# ============================================================
POST_BLOCKED_PENDING = "pending"
POST_BLOCKED_NOT_PROVIDER = "not_provider"


def post_property_block(profile: Optional[Profile]) -> Optional[str]:
    """
    Why this profile cannot post, or None when it can.
    Pending providers are told to wait; everyone else is offered
    the provider sign-up.
    """
    if can_post_property(profile):
        return None
    if is_pending(profile):
        return POST_BLOCKED_PENDING
    return POST_BLOCKED_NOT_PROVIDER

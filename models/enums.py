from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# USER TYPE
# -----------------------------------------------------
class UserType(BaseStrEnum):
    """Account role, fixed at sign-up."""

    seeker = "seeker"
    provider = "provider"
    admin = "admin"


# -----------------------------------------------------
# PROVIDER TYPE
# -----------------------------------------------------
class ProviderType(BaseStrEnum):
    """Kind of provider. Only set for provider accounts."""

    owner = "owner"
    agent = "agent"
    builder = "builder"


# -----------------------------------------------------
# APPROVAL STATUS
# -----------------------------------------------------
class ApprovalStatus(BaseStrEnum):
    """Moderation state of a provider account."""

    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# -----------------------------------------------------
# OAUTH PROVIDERS
# -----------------------------------------------------
class OAuthProvider(BaseStrEnum):
    """Social sign-in providers offered on the login page."""

    google = "google"
    facebook = "facebook"

from studio_app.models.enums import GlobalRole, MembershipRole, MembershipStatus
from studio_app.models.profile import UserProfile
from studio_app.models.studio import Studio
from studio_app.models.studio_membership import StudioMembership

__all__ = [
    "GlobalRole",
    "MembershipRole",
    "MembershipStatus",
    "Studio",
    "StudioMembership",
    "UserProfile",
]

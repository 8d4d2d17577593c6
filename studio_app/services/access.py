"""Authorization gate for studio, studio-admin and site-admin surfaces.

Every check returns either a success value or a ``StudioError``; only
``require_studio_membership`` raises, because its callers answer with a redirect.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import InterfaceError, OperationalError, ProgrammingError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_app.core.exceptions import AccessRedirect
from studio_app.core.identity import IdentityProvider, sign_in_url
from studio_app.models.enums import MembershipRole, MembershipStatus
from studio_app.models.profile import UserProfile
from studio_app.models.studio import Studio
from studio_app.models.studio_membership import StudioMembership
from studio_app.services.errors import (
    DATABASE_NOT_CONFIGURED,
    DATABASE_UNAVAILABLE,
    PROFILE_NOT_FOUND,
    SIGN_IN_REQUIRED,
    ErrorKind,
    StudioError,
)
from studio_app.services.profiles import ProfileService

logger = logging.getLogger(__name__)

# Connection failures and schema drift (missing tables) surface as these.
STORE_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, ProgrammingError, OSError)


@dataclass(frozen=True)
class StudioAccess:
    profile: UserProfile
    membership: StudioMembership


@dataclass(frozen=True)
class AdminStudio:
    profile: UserProfile
    studio: Studio
    membership: StudioMembership | None


def is_studio_owner(studio: Studio, profile: UserProfile) -> bool:
    return studio.owner_id == profile.id


def has_admin_membership(studio: Studio, membership: StudioMembership | None) -> bool:
    """An Approved Admin membership in this particular studio."""
    if membership is None or membership.studio_id != studio.id:
        return False
    match membership.status:
        case MembershipStatus.APPROVED:
            pass
        case MembershipStatus.PENDING | MembershipStatus.DENIED | MembershipStatus.REMOVED:
            return False
    match membership.role:
        case MembershipRole.ADMIN:
            return True
        case MembershipRole.MEMBER:
            return False
    return False


def can_manage_studio(
    studio: Studio, profile: UserProfile, membership: StudioMembership | None
) -> bool:
    """Owner override alongside the membership-role check.

    The studio owner holds admin rights even without a membership row.
    """
    return is_studio_owner(studio, profile) or has_admin_membership(studio, membership)


async def load_profile(
    db: AsyncSession | None,
    identity_id: str | None,
    identity_provider: IdentityProvider,
) -> UserProfile | StudioError:
    if not identity_id:
        return StudioError(ErrorKind.UNAUTHENTICATED, SIGN_IN_REQUIRED)

    if db is None:
        return StudioError(ErrorKind.SERVICE_UNAVAILABLE, DATABASE_NOT_CONFIGURED)

    try:
        profile = await ProfileService(db, identity_provider).resolve(identity_id)
    except STORE_UNAVAILABLE_ERRORS:
        logger.exception(
            "Failed to authorize studio membership due to database error",
            extra={"identity_id": identity_id},
        )
        return StudioError(ErrorKind.SERVICE_UNAVAILABLE, DATABASE_UNAVAILABLE)

    if profile is None:
        return StudioError(ErrorKind.PROFILE_NOT_FOUND, PROFILE_NOT_FOUND)
    return profile


async def find_approved_membership(
    db: AsyncSession, profile: UserProfile
) -> StudioMembership | None:
    return await db.scalar(
        select(StudioMembership).where(
            StudioMembership.user_id == profile.id,
            StudioMembership.status == MembershipStatus.APPROVED,
        )
    )


async def authorize_studio_member(
    db: AsyncSession | None,
    identity_id: str | None,
    identity_provider: IdentityProvider,
    required_role: MembershipRole | None = None,
) -> StudioAccess | StudioError:
    profile = await load_profile(db, identity_id, identity_provider)
    if isinstance(profile, StudioError):
        return profile

    membership = await find_approved_membership(db, profile)
    if membership is None:
        return StudioError(
            ErrorKind.FORBIDDEN,
            "An approved studio membership is required to access this area.",
        )

    if required_role is not None and membership.role != required_role:
        return StudioError(ErrorKind.FORBIDDEN, "Only studio admins can access this area.")

    return StudioAccess(profile=profile, membership=membership)


async def require_studio_membership(
    db: AsyncSession | None,
    identity_id: str | None,
    identity_provider: IdentityProvider,
    return_back_url: str,
    required_role: MembershipRole | None = None,
    redirect_path: str | None = None,
) -> StudioAccess:
    """Like authorize_studio_member, but failures become redirects.

    Unauthenticated -> sign-in (coming back to ``return_back_url``);
    store unavailable -> ``redirect_path`` or the docs; anything else ->
    ``redirect_path`` or the request-access page.
    """
    result = await authorize_studio_member(db, identity_id, identity_provider, required_role)
    if not isinstance(result, StudioError):
        return result

    match result.kind:
        case ErrorKind.UNAUTHENTICATED:
            raise AccessRedirect(sign_in_url(return_back_url))
        case ErrorKind.SERVICE_UNAVAILABLE:
            raise AccessRedirect(redirect_path or "/docs")
        case _:
            raise AccessRedirect(redirect_path or "/join")


async def authorize_site_admin(
    db: AsyncSession | None,
    identity_id: str | None,
    identity_provider: IdentityProvider,
) -> UserProfile | StudioError:
    profile = await load_profile(db, identity_id, identity_provider)
    if isinstance(profile, StudioError):
        return profile

    if not profile.is_site_admin:
        return StudioError(ErrorKind.FORBIDDEN, "Site admin access required.")
    return profile


async def resolve_admin_studio(
    db: AsyncSession | None,
    identity_id: str | None,
    identity_provider: IdentityProvider,
) -> AdminStudio | StudioError:
    """The studio the caller may administer: their approved studio, else one they own."""
    profile = await load_profile(db, identity_id, identity_provider)
    if isinstance(profile, StudioError):
        return profile

    membership = await find_approved_membership(db, profile)

    studio = None
    if membership is not None:
        studio = await db.get(Studio, membership.studio_id)
    if studio is None:
        studio = await db.scalar(
            select(Studio)
            .where(Studio.owner_id == profile.id)
            .order_by(Studio.created_at.asc())
            .limit(1)
        )
    if studio is None:
        return StudioError(ErrorKind.NOT_FOUND, "No studio found for your account.")

    if not can_manage_studio(studio, profile, membership):
        return StudioError(ErrorKind.FORBIDDEN, "Only studio admins can manage this studio.")

    scoped = membership if membership is not None and membership.studio_id == studio.id else None
    return AdminStudio(profile=profile, studio=studio, membership=scoped)

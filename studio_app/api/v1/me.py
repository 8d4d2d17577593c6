"""Current caller: profile and (at most one) studio membership."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studio_app.core.dependencies import get_db, get_identity_id, get_identity_provider
from studio_app.core.exceptions import unwrap
from studio_app.core.identity import ClaimsIdentityProvider
from studio_app.schemas.membership import MembershipResponse
from studio_app.schemas.profile import MeResponse, ProfileResponse
from studio_app.services.access import load_profile
from studio_app.services.memberships import MembershipService

router = APIRouter()


@router.get("/me", response_model=MeResponse)
async def get_me(
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
):
    """Profile plus membership in any status, so the UI can branch on it."""
    profile = unwrap(await load_profile(db, identity_id, identity_provider))
    membership = await MembershipService(db).find_membership_for_user(profile.id)

    return MeResponse(
        profile=ProfileResponse.model_validate(profile),
        membership=MembershipResponse.model_validate(membership) if membership else None,
    )

"""Studio routes: creation, studio-scoped join requests and legacy join passwords."""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_app.core.config import settings
from studio_app.core.dependencies import (
    get_base_url,
    get_db,
    get_identity_id,
    get_identity_provider,
    get_membership_service,
)
from studio_app.core.exceptions import problem_from_error, unwrap
from studio_app.core.identity import ClaimsIdentityProvider
from studio_app.schemas.membership import (
    JoinRequestCreate,
    JoinRequestResponse,
    MembershipResponse,
)
from studio_app.schemas.studio import (
    JoinPasswordResponse,
    StudioCreate,
    StudioCreateResponse,
    StudioResponse,
)
from studio_app.services.access import load_profile, resolve_admin_studio
from studio_app.services.audit import log_join_request_result
from studio_app.services.errors import ErrorKind, StudioError
from studio_app.services.invites import build_invite_url
from studio_app.services.memberships import MembershipService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=StudioCreateResponse, status_code=201)
async def create_studio(
    body: StudioCreate,
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    service: MembershipService | None = Depends(get_membership_service),
    base_url: str = Depends(get_base_url),
):
    """Create a studio. The caller becomes its owner with an Approved/Admin membership.

    Pre-membership endpoint: the caller only needs a profile.
    """
    profile = unwrap(await load_profile(db, identity_id, identity_provider))
    created = unwrap(await service.create_studio(profile, body.name, body.join_password))

    return StudioCreateResponse(
        studio=StudioResponse.model_validate(created.studio),
        membership=MembershipResponse.model_validate(created.membership),
        invite_url=build_invite_url(
            base_url, created.studio.invite_token, settings.INVITE_PATH
        ),
    )


@router.post("/{studio_id}/join-password", response_model=JoinPasswordResponse)
async def issue_join_password(
    studio_id: uuid.UUID,
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    service: MembershipService | None = Depends(get_membership_service),
):
    """Issue a fresh legacy join password. Requires studio admin (or owner)."""
    admin = unwrap(await resolve_admin_studio(db, identity_id, identity_provider))
    if admin.studio.id != studio_id:
        raise problem_from_error(
            StudioError(ErrorKind.FORBIDDEN, "You cannot manage this studio.")
        )

    issued = unwrap(await service.issue_join_password(studio_id))
    return JoinPasswordResponse(
        studio_id=issued.studio.id,
        name=issued.studio.name,
        join_password=issued.join_password,
        join_password_updated_at=issued.studio.join_password_updated_at,
    )


@router.post("/{studio_id}/join", response_model=JoinRequestResponse, status_code=201)
async def submit_studio_join_request(
    studio_id: uuid.UUID,
    body: JoinRequestCreate,
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    service: MembershipService | None = Depends(get_membership_service),
):
    """Request to join a known studio. The invite token must be the studio's current one."""
    profile = unwrap(await load_profile(db, identity_id, identity_provider))
    if not body.invite_token:
        raise problem_from_error(
            StudioError(
                ErrorKind.INVALID_INVITE,
                "An invite token is required to request access to this studio.",
            )
        )

    try:
        result = await service.submit_join_request(
            body.invite_token, profile.id, studio_id=studio_id
        )
    except SQLAlchemyError:
        logger.exception(
            "Failed to create studio join request",
            extra={"user_id": str(profile.id), "studio_id": str(studio_id), "action": "join"},
        )
        raise

    log_join_request_result(
        flow="studio",
        user_id=profile.id,
        user_email=profile.email,
        result=result,
        studio_id=studio_id,
    )
    if isinstance(result, StudioError):
        raise problem_from_error(result)

    return JoinRequestResponse(
        membership_id=result.membership.id,
        status=result.membership.status,
        studio_id=result.studio_id,
    )

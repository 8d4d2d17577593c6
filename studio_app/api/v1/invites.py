"""Join a studio through its invite link."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_app.core.dependencies import (
    get_db,
    get_identity_id,
    get_identity_provider,
    get_membership_service,
)
from studio_app.core.exceptions import problem_from_error, unwrap
from studio_app.core.identity import ClaimsIdentityProvider
from studio_app.schemas.membership import JoinRequestCreate, JoinRequestResponse
from studio_app.services.access import load_profile
from studio_app.services.audit import log_join_request_result
from studio_app.services.errors import StudioError
from studio_app.services.memberships import MembershipService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/invite", response_model=JoinRequestResponse, status_code=201)
async def submit_join_request(
    body: JoinRequestCreate,
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    service: MembershipService | None = Depends(get_membership_service),
):
    """Create a Pending membership for the caller in the invite's studio."""
    profile = unwrap(await load_profile(db, identity_id, identity_provider))

    try:
        result = await service.submit_join_request(body.invite_token, profile.id)
    except SQLAlchemyError:
        logger.exception(
            "Failed to create studio join request",
            extra={"user_id": str(profile.id), "action": "join"},
        )
        raise

    log_join_request_result(
        flow="invite", user_id=profile.id, user_email=profile.email, result=result
    )
    if isinstance(result, StudioError):
        raise problem_from_error(result)

    return JoinRequestResponse(
        membership_id=result.membership.id,
        status=result.membership.status,
        studio_id=result.studio_id,
    )

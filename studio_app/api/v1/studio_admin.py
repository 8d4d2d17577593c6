"""Studio-admin surface: invite link, join limit and membership requests.

Callers are resolved with resolve_admin_studio: an Approved Admin of the
studio, or its owner.
"""

import logging

from fastapi import APIRouter, Depends, Request
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
from studio_app.core.exceptions import unwrap
from studio_app.core.identity import ClaimsIdentityProvider
from studio_app.models.enums import MembershipRole
from studio_app.schemas.invite import InviteResponse, JoinLimitResponse
from studio_app.schemas.membership import (
    MembershipDecisionRequest,
    MembershipDecisionResponse,
    MembershipResponse,
    PendingRequestResponse,
    RequesterInfo,
)
from studio_app.services.access import require_studio_membership, resolve_admin_studio
from studio_app.services.audit import log_membership_decision
from studio_app.services.invites import InviteService
from studio_app.services.memberships import MembershipService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/invite", response_model=InviteResponse)
async def get_invite(
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    base_url: str = Depends(get_base_url),
):
    """Current invite link for the caller's studio."""
    admin = unwrap(await resolve_admin_studio(db, identity_id, identity_provider))
    invite = unwrap(
        await InviteService(db).get_invite_details(admin.studio.id, base_url, settings.INVITE_PATH)
    )
    return InviteResponse.model_validate(invite)


@router.post("/invite", response_model=InviteResponse)
async def rotate_invite(
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    base_url: str = Depends(get_base_url),
):
    """Issue a new invite token; Denied/Removed requests are cleared."""
    admin = unwrap(await resolve_admin_studio(db, identity_id, identity_provider))
    studio_id, user_id = admin.studio.id, admin.profile.id
    try:
        invite = await InviteService(db).rotate_invite(studio_id, base_url, settings.INVITE_PATH)
    except SQLAlchemyError:
        logger.exception(
            "Failed to rotate studio invite link",
            extra={
                "studio_id": str(studio_id),
                "user_id": str(user_id),
                "action": "rotate_invite",
            },
        )
        raise
    return InviteResponse.model_validate(unwrap(invite))


@router.get("/join-limit", response_model=JoinLimitResponse)
async def get_join_limit(
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    service: MembershipService | None = Depends(get_membership_service),
):
    admin = unwrap(await resolve_admin_studio(db, identity_id, identity_provider))
    status = await service.limiter.get_join_limit_status(admin.studio.id)
    return JoinLimitResponse.model_validate(status)


@router.get("/members", response_model=list[PendingRequestResponse])
async def list_pending_requests(
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    service: MembershipService | None = Depends(get_membership_service),
):
    """Pending join requests for the caller's studio, newest first."""
    admin = unwrap(await resolve_admin_studio(db, identity_id, identity_provider))
    pending = await service.list_pending_requests(admin.studio.id)
    return [
        PendingRequestResponse(
            id=m.id,
            user_id=m.user_id,
            status=m.status,
            created_at=m.created_at,
            user=RequesterInfo(name=m.user.name, email=m.user.email),
        )
        for m in pending
    ]


@router.post("/members", response_model=MembershipDecisionResponse)
async def decide_membership(
    body: MembershipDecisionRequest,
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    service: MembershipService | None = Depends(get_membership_service),
):
    """Approve, deny or remove a membership of the caller's studio."""
    admin = unwrap(await resolve_admin_studio(db, identity_id, identity_provider))
    decision = unwrap(
        await service.decide_membership(body.membership_id, body.action, admin.studio.id)
    )

    log_membership_decision(
        action=decision.action.value,
        actor_user_id=admin.profile.id,
        actor_email=admin.profile.email,
        membership_user_id=decision.membership.user_id,
        membership_email=decision.membership.user.email,
        membership_id=decision.membership.id,
        resulting_status=decision.membership.status,
        studio_id=decision.membership.studio_id,
    )
    return MembershipDecisionResponse(
        membership_id=decision.membership.id,
        status=decision.membership.status,
        message=decision.message,
    )


@router.get("/access", response_model=MembershipResponse)
async def studio_admin_access(
    request: Request,
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
):
    """Entry check for the studio-admin pages; failures redirect (303)."""
    access = await require_studio_membership(
        db,
        identity_id,
        identity_provider,
        return_back_url=str(request.url),
        required_role=MembershipRole.ADMIN,
    )
    return MembershipResponse.model_validate(access.membership)

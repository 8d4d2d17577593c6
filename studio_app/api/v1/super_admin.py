"""Site-admin surface: every studio, unscoped decisions and role reassignment."""

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
from studio_app.core.exceptions import unwrap
from studio_app.core.identity import ClaimsIdentityProvider
from studio_app.schemas.membership import (
    MembershipDecisionRequest,
    MembershipDecisionResponse,
    RoleChangeRequest,
    RoleChangeResponse,
)
from studio_app.schemas.studio import StudioDetail
from studio_app.services.access import authorize_site_admin
from studio_app.services.audit import log_membership_decision
from studio_app.services.memberships import MembershipService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/studios", response_model=list[StudioDetail])
async def list_studios(
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    service: MembershipService | None = Depends(get_membership_service),
):
    unwrap(await authorize_site_admin(db, identity_id, identity_provider))
    studios = await service.list_studios()
    return [StudioDetail.model_validate(s) for s in studios]


@router.post("/members/decision", response_model=MembershipDecisionResponse)
async def decide_membership(
    body: MembershipDecisionRequest,
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    service: MembershipService | None = Depends(get_membership_service),
):
    admin = unwrap(await authorize_site_admin(db, identity_id, identity_provider))
    decision = unwrap(await service.decide_membership(body.membership_id, body.action))

    log_membership_decision(
        action=decision.action.value,
        actor_user_id=admin.id,
        actor_email=admin.email,
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


@router.post("/members/role", response_model=RoleChangeResponse)
async def change_role(
    body: RoleChangeRequest,
    db: AsyncSession | None = Depends(get_db),
    identity_id: str | None = Depends(get_identity_id),
    identity_provider: ClaimsIdentityProvider = Depends(get_identity_provider),
    service: MembershipService | None = Depends(get_membership_service),
):
    """Promote or demote an approved member. Promotion demotes the current admin."""
    admin = unwrap(await authorize_site_admin(db, identity_id, identity_provider))
    try:
        change = await service.change_role(body.membership_id, body.role)
    except SQLAlchemyError:
        logger.exception(
            "Failed to change membership role",
            extra={
                "membership_id": str(body.membership_id),
                "user_id": str(admin.id),
                "action": "change_role",
            },
        )
        raise
    change = unwrap(change)

    return RoleChangeResponse(
        membership_id=change.membership.id,
        role=change.membership.role,
        changed=change.changed,
        message=change.message,
    )

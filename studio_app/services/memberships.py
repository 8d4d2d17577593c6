"""Studio membership lifecycle.

State machine per membership::

    Pending  -> Approved | Denied
    Approved -> Removed
    Approved.role: Member <-> Admin

Denied and Removed are terminal; those rows are deleted when the studio's
invite token is rotated. A profile holds at most one membership system-wide
(``uq_studio_memberships_user``).
"""

import logging
import uuid
from dataclasses import dataclass
from enum import StrEnum

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from studio_app.models.enums import MembershipRole, MembershipStatus
from studio_app.models.profile import UserProfile
from studio_app.models.studio import Studio
from studio_app.models.studio_membership import StudioMembership
from studio_app.services.errors import ErrorKind, StudioError
from studio_app.services.invites import UNIQUE_TOKEN_ATTEMPTS, generate_invite_token
from studio_app.services.join_limits import JoinRateLimiter
from studio_app.services.passwords import generate_join_password, hash_join_password
from studio_app.services.retry import (
    RetriesExhaustedError,
    is_unique_violation,
    retry_on_unique_violation,
)

logger = logging.getLogger(__name__)

INVALID_INVITE_MESSAGE = (
    "This invite link is invalid or has expired. Ask the studio owner for a new invite."
)
RATE_LIMITED_MESSAGE = (
    "This studio has reached its daily join request limit. Try again in 24 hours."
)
DIFFERENT_STUDIO_MESSAGE = (
    "You already belong to a different studio. Leave it before requesting a new one."
)
RACE_CONFLICT_MESSAGE = "You already have a pending request for this studio."


class MembershipAction(StrEnum):
    APPROVE = "approve"
    DENY = "deny"
    REMOVE = "remove"

    @property
    def target_status(self) -> MembershipStatus:
        match self:
            case MembershipAction.APPROVE:
                return MembershipStatus.APPROVED
            case MembershipAction.DENY:
                return MembershipStatus.DENIED
            case MembershipAction.REMOVE:
                return MembershipStatus.REMOVED

    @property
    def past_tense(self) -> str:
        match self:
            case MembershipAction.APPROVE:
                return "approved"
            case MembershipAction.DENY:
                return "denied"
            case MembershipAction.REMOVE:
                return "removed"


MEMBERSHIP_TRANSITIONS: dict[MembershipStatus, list[MembershipStatus]] = {
    MembershipStatus.PENDING: [MembershipStatus.APPROVED, MembershipStatus.DENIED],
    MembershipStatus.APPROVED: [MembershipStatus.REMOVED],
    MembershipStatus.DENIED: [],
    MembershipStatus.REMOVED: [],
}


def same_studio_conflict_message(status: MembershipStatus) -> str:
    match status:
        case MembershipStatus.PENDING:
            return "You already have a pending request for this studio."
        case MembershipStatus.APPROVED:
            return "You are already a member of this studio."
        case MembershipStatus.DENIED:
            return (
                "Your previous request was denied. Ask the studio to generate a new "
                "invite link to try again."
            )
        case MembershipStatus.REMOVED:
            return (
                "Your membership was removed. Ask the studio to generate a new invite "
                "link to request access again."
            )


@dataclass(frozen=True)
class JoinRequestSuccess:
    membership: StudioMembership
    studio_id: uuid.UUID


@dataclass(frozen=True)
class MembershipDecision:
    membership: StudioMembership
    action: MembershipAction
    previous_status: MembershipStatus

    @property
    def message(self) -> str:
        return f"Member {self.action.past_tense}."


@dataclass(frozen=True)
class RoleChange:
    membership: StudioMembership
    changed: bool
    demoted_ids: tuple[uuid.UUID, ...] = ()

    @property
    def message(self) -> str:
        if not self.changed:
            return "No role change needed."
        match self.membership.role:
            case MembershipRole.ADMIN:
                return "Promoted to admin."
            case MembershipRole.MEMBER:
                return "Demoted to member."


@dataclass(frozen=True)
class CreatedStudio:
    studio: Studio
    membership: StudioMembership


@dataclass(frozen=True)
class IssuedJoinPassword:
    studio: Studio
    join_password: str


class MembershipService:
    def __init__(self, db: AsyncSession, limiter: JoinRateLimiter | None = None):
        self.db = db
        self.limiter = limiter or JoinRateLimiter(db)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def find_membership_for_user(self, profile_id: uuid.UUID) -> StudioMembership | None:
        """The profile's single membership, whatever studio and status."""
        return await self.db.scalar(
            select(StudioMembership).where(StudioMembership.user_id == profile_id)
        )

    async def list_pending_requests(self, studio_id: uuid.UUID) -> list[StudioMembership]:
        result = await self.db.execute(
            select(StudioMembership)
            .options(selectinload(StudioMembership.user))
            .where(
                StudioMembership.studio_id == studio_id,
                StudioMembership.status == MembershipStatus.PENDING,
            )
            .order_by(StudioMembership.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_studios(self) -> list[Studio]:
        """Every studio with owner and memberships (site-admin surface)."""
        result = await self.db.execute(
            select(Studio)
            .options(
                selectinload(Studio.owner),
                selectinload(Studio.memberships).selectinload(StudioMembership.user),
            )
            .order_by(Studio.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Studio creation
    # ------------------------------------------------------------------

    async def create_studio(
        self,
        owner: UserProfile,
        name: str,
        join_password: str | None = None,
    ) -> CreatedStudio | StudioError:
        """Create a studio whose owner gets an Approved/Admin membership."""
        existing = await self.find_membership_for_user(owner.id)
        if existing is not None:
            return StudioError(
                ErrorKind.CONFLICT,
                "You already belong to a studio. Leave it before creating a new one.",
                membership_status=existing.status,
                studio_id=existing.studio_id,
            )

        password_hash = hash_join_password(join_password) if join_password else None

        async def _insert_studio(attempt: int) -> Studio:
            studio = Studio(
                name=name,
                owner_id=owner.id,
                invite_token=generate_invite_token(),
                join_password_hash=password_hash.hash if password_hash else None,
                join_password_salt=password_hash.salt if password_hash else None,
                join_password_updated_at=password_hash.updated_at if password_hash else None,
            )
            async with self.db.begin_nested():
                self.db.add(studio)
                await self.db.flush()
            return studio

        try:
            studio = await retry_on_unique_violation(_insert_studio, attempts=UNIQUE_TOKEN_ATTEMPTS)
        except RetriesExhaustedError:
            logger.error(
                "Studio creation exhausted invite token retries",
                extra={"owner_id": str(owner.id)},
            )
            return StudioError(
                ErrorKind.EXHAUSTED_RETRIES,
                "Unable to generate a unique invite token after several attempts.",
            )

        membership = StudioMembership(
            studio_id=studio.id,
            user_id=owner.id,
            role=MembershipRole.ADMIN,
            status=MembershipStatus.APPROVED,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(membership)
                await self.db.flush()
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            # Lost a race against a concurrent join/create for the same profile
            await self.db.delete(studio)
            await self.db.flush()
            return StudioError(
                ErrorKind.CONFLICT,
                "You already belong to a studio. Leave it before creating a new one.",
            )

        logger.info(
            "Studio created",
            extra={"studio_id": str(studio.id), "owner_id": str(owner.id)},
        )
        return CreatedStudio(studio=studio, membership=membership)

    async def issue_join_password(self, studio_id: uuid.UUID) -> IssuedJoinPassword | StudioError:
        """Replace the legacy join password; the plaintext is returned exactly once."""
        studio = await self.db.get(Studio, studio_id)
        if studio is None:
            return StudioError(ErrorKind.NOT_FOUND, "Studio not found.")

        password = generate_join_password()
        hashed = hash_join_password(password)
        studio.join_password_hash = hashed.hash
        studio.join_password_salt = hashed.salt
        studio.join_password_updated_at = hashed.updated_at
        await self.db.flush()

        return IssuedJoinPassword(studio=studio, join_password=password)

    # ------------------------------------------------------------------
    # Join requests
    # ------------------------------------------------------------------

    async def submit_join_request(
        self,
        invite_token: str,
        profile_id: uuid.UUID,
        studio_id: uuid.UUID | None = None,
    ) -> JoinRequestSuccess | StudioError:
        """Create a Pending membership from an invite token.

        With ``studio_id`` the studio is looked up by id and the token must
        still be its current one.
        """
        studio = None
        if studio_id is not None:
            studio = await self.db.get(Studio, studio_id)
        elif invite_token:
            studio = await self.db.scalar(select(Studio).where(Studio.invite_token == invite_token))
        if studio is None or studio.invite_token != invite_token:
            return StudioError(ErrorKind.INVALID_INVITE, INVALID_INVITE_MESSAGE)

        limit_status = await self.limiter.get_join_limit_status(studio.id)
        if limit_status.limit_reached:
            return StudioError(
                ErrorKind.RATE_LIMITED,
                RATE_LIMITED_MESSAGE,
                join_limit=limit_status,
                studio_id=studio.id,
            )

        existing = await self.find_membership_for_user(profile_id)
        if existing is not None:
            if existing.studio_id == studio.id:
                return StudioError(
                    ErrorKind.CONFLICT,
                    same_studio_conflict_message(existing.status),
                    membership_status=existing.status,
                    studio_id=studio.id,
                )
            return StudioError(
                ErrorKind.CONFLICT,
                DIFFERENT_STUDIO_MESSAGE,
                membership_status=existing.status,
                studio_id=existing.studio_id,
            )

        membership = StudioMembership(
            studio_id=studio.id,
            user_id=profile_id,
            role=MembershipRole.MEMBER,
            status=MembershipStatus.PENDING,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(membership)
                await self.db.flush()
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            # A concurrent request inserted first
            return StudioError(
                ErrorKind.CONFLICT,
                RACE_CONFLICT_MESSAGE,
                membership_status=MembershipStatus.PENDING,
                studio_id=studio.id,
            )

        return JoinRequestSuccess(membership=membership, studio_id=studio.id)

    # ------------------------------------------------------------------
    # Admin decisions
    # ------------------------------------------------------------------

    async def decide_membership(
        self,
        membership_id: uuid.UUID,
        action: MembershipAction,
        studio_id: uuid.UUID | None = None,
    ) -> MembershipDecision | StudioError:
        """Approve, deny or remove a membership.

        ``studio_id`` is the caller's administered studio (from
        resolve_admin_studio); a membership elsewhere is reported as not found.
        Pass None only on the site-admin surface.
        """
        membership = await self.db.scalar(
            select(StudioMembership)
            .options(selectinload(StudioMembership.user))
            .where(StudioMembership.id == membership_id)
            .execution_options(populate_existing=True)
        )
        if membership is None or (studio_id is not None and membership.studio_id != studio_id):
            return StudioError(ErrorKind.NOT_FOUND, "Membership not found for this studio.")

        previous = membership.status
        target = action.target_status
        if target not in MEMBERSHIP_TRANSITIONS[previous]:
            return StudioError(
                ErrorKind.INVALID_STATE,
                f"Cannot {action.value} a membership that is {previous.value.lower()}.",
                membership_status=previous,
                studio_id=membership.studio_id,
            )

        if action is MembershipAction.REMOVE:
            owner_id = await self.db.scalar(
                select(Studio.owner_id).where(Studio.id == membership.studio_id)
            )
            if owner_id == membership.user_id:
                return StudioError(
                    ErrorKind.INVALID_STATE,
                    "The studio owner cannot be removed.",
                    membership_status=previous,
                    studio_id=membership.studio_id,
                )

        membership.status = target
        await self.db.flush()

        return MembershipDecision(membership=membership, action=action, previous_status=previous)

    async def change_role(
        self, membership_id: uuid.UUID, role: MembershipRole
    ) -> RoleChange | StudioError:
        """Reassign Admin/Member; promoting demotes the studio's current admin."""
        membership = await self.db.scalar(
            select(StudioMembership)
            .where(StudioMembership.id == membership_id)
            .execution_options(populate_existing=True)
        )
        if membership is None:
            return StudioError(ErrorKind.NOT_FOUND, "Membership not found.")

        if membership.status != MembershipStatus.APPROVED:
            return StudioError(
                ErrorKind.INVALID_STATE,
                "Only approved members can be promoted or demoted.",
                membership_status=membership.status,
                studio_id=membership.studio_id,
            )

        if membership.role == role:
            return RoleChange(membership=membership, changed=False)

        demoted: tuple[uuid.UUID, ...] = ()
        match role:
            case MembershipRole.ADMIN:
                async with self.db.begin_nested():
                    current_admins = await self.db.scalars(
                        select(StudioMembership).where(
                            StudioMembership.studio_id == membership.studio_id,
                            StudioMembership.role == MembershipRole.ADMIN,
                            StudioMembership.status == MembershipStatus.APPROVED,
                            StudioMembership.id != membership.id,
                        )
                    )
                    for admin in current_admins.all():
                        admin.role = MembershipRole.MEMBER
                        demoted += (admin.id,)
                    membership.role = MembershipRole.ADMIN
                    await self.db.flush()
            case MembershipRole.MEMBER:
                membership.role = MembershipRole.MEMBER
                await self.db.flush()

        logger.info(
            "Membership role changed",
            extra={
                "studio_id": str(membership.studio_id),
                "membership_id": str(membership.id),
                "role": role.value,
                "demoted_membership_ids": [str(d) for d in demoted],
            },
        )
        return RoleChange(membership=membership, changed=True, demoted_ids=demoted)

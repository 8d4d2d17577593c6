"""Lazy user-profile provisioning from the identity provider."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_app.core.identity import Identity, IdentityProvider
from studio_app.models.enums import GlobalRole
from studio_app.models.profile import UserProfile
from studio_app.services.retry import is_unique_violation

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, db: AsyncSession, identity_provider: IdentityProvider):
        self.db = db
        self.identity_provider = identity_provider

    async def get_by_external_id(self, external_id: str) -> UserProfile | None:
        return await self.db.scalar(
            select(UserProfile).where(UserProfile.external_id == external_id)
        )

    async def resolve(self, external_id: str) -> UserProfile | None:
        """Return the profile for ``external_id``, creating it on first contact.

        None when neither a profile nor an identity-provider user exists.
        """
        profile = await self.get_by_external_id(external_id)
        identity = await self.identity_provider.get_user(external_id)

        if profile is None:
            if identity is None:
                return None
            return await self._create(identity)

        if identity is not None:
            self._sync(profile, identity)
        return profile

    async def _create(self, identity: Identity) -> UserProfile:
        profile = UserProfile(
            external_id=identity.external_id,
            email=identity.email,
            name=identity.name,
            global_role=GlobalRole.SITE_ADMIN if identity.is_site_admin else GlobalRole.USER,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(profile)
                await self.db.flush()
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            # A concurrent first-contact request inserted the profile first
            winner = await self.db.scalar(
                select(UserProfile)
                .where(UserProfile.external_id == identity.external_id)
                .execution_options(populate_existing=True)
            )
            if winner is None:
                raise
            self._sync(winner, identity)
            return winner

        logger.info(
            "Provisioned user profile",
            extra={"profile_id": str(profile.id), "external_id": identity.external_id},
        )
        return profile

    def _sync(self, profile: UserProfile, identity: Identity) -> None:
        global_role = GlobalRole.SITE_ADMIN if identity.is_site_admin else GlobalRole.USER
        if profile.global_role != global_role:
            profile.global_role = global_role
        if identity.email and profile.email is None:
            profile.email = identity.email
        if identity.name and profile.name is None:
            profile.name = identity.name

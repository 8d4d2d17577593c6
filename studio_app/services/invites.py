"""Studio invite tokens: generation, shareable URLs and rotation."""

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import urlencode, urljoin, urlsplit

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from studio_app.models.enums import MembershipStatus
from studio_app.models.studio import Studio
from studio_app.models.studio_membership import StudioMembership
from studio_app.services.errors import ErrorKind, StudioError
from studio_app.services.retry import RetriesExhaustedError, retry_on_unique_violation

logger = logging.getLogger(__name__)

DEFAULT_INVITE_PATH = "/invite"
DEFAULT_TOKEN_BYTES = 48
UNIQUE_TOKEN_ATTEMPTS = 3

# Rotation frees these rows so their users may request again under the new link.
STALE_STATUSES = (MembershipStatus.DENIED, MembershipStatus.REMOVED)


class InvalidBaseUrl(ValueError):
    pass


@dataclass(frozen=True)
class InviteDetails:
    invite_token: str
    invite_url: str
    invite_token_created_at: datetime


def generate_invite_token(byte_length: int = DEFAULT_TOKEN_BYTES) -> str:
    return secrets.token_hex(byte_length)


def build_invite_url(base_url: str, token: str, path: str = DEFAULT_INVITE_PATH) -> str:
    """Return ``base_url + path?inviteToken=token``.

    Raises InvalidBaseUrl when the base URL is empty or not an absolute http(s) URL.
    """
    if not base_url or not base_url.strip():
        raise InvalidBaseUrl("A base URL is required to build the studio invite link.")

    parts = urlsplit(base_url.strip())
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidBaseUrl(f"Invalid base URL for invite link: {base_url!r}")

    normalized_path = path if path.startswith("/") else f"/{path}"
    url = urljoin(f"{parts.scheme}://{parts.netloc}", normalized_path)
    return f"{url}?{urlencode({'inviteToken': token})}"


class InviteService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_invite_details(
        self,
        studio_id: uuid.UUID,
        base_url: str,
        path: str = DEFAULT_INVITE_PATH,
    ) -> InviteDetails | StudioError:
        studio = await self.db.get(Studio, studio_id)
        if studio is None:
            return StudioError(ErrorKind.NOT_FOUND, "Studio not found.")

        return InviteDetails(
            invite_token=studio.invite_token,
            invite_url=build_invite_url(base_url, studio.invite_token, path),
            invite_token_created_at=studio.invite_token_created_at,
        )

    async def rotate_invite(
        self,
        studio_id: uuid.UUID,
        base_url: str,
        path: str = DEFAULT_INVITE_PATH,
    ) -> InviteDetails | StudioError:
        """Issue a new token and purge Denied/Removed memberships atomically."""
        # Validate before writing anything
        build_invite_url(base_url, "", path)

        exists = await self.db.scalar(select(Studio.id).where(Studio.id == studio_id))
        if exists is None:
            return StudioError(ErrorKind.NOT_FOUND, "Studio not found.")

        async def _attempt(attempt: int) -> tuple[str, datetime, int]:
            token = generate_invite_token()
            created_at = datetime.now(UTC)
            async with self.db.begin_nested():
                await self.db.execute(
                    update(Studio)
                    .where(Studio.id == studio_id)
                    .values(invite_token=token, invite_token_created_at=created_at)
                )
                purged = await self.db.execute(
                    delete(StudioMembership)
                    .where(
                        StudioMembership.studio_id == studio_id,
                        StudioMembership.status.in_(STALE_STATUSES),
                    )
                )
            return token, created_at, purged.rowcount

        try:
            token, created_at, purged = await retry_on_unique_violation(
                _attempt, attempts=UNIQUE_TOKEN_ATTEMPTS
            )
        except RetriesExhaustedError:
            logger.error(
                "Invite token rotation exhausted retries",
                extra={"studio_id": str(studio_id), "attempts": UNIQUE_TOKEN_ATTEMPTS},
            )
            return StudioError(
                ErrorKind.EXHAUSTED_RETRIES,
                "Unable to generate a unique invite token after several attempts.",
                studio_id=studio_id,
            )

        logger.info(
            "Studio invite rotated",
            extra={"studio_id": str(studio_id), "purged_memberships": purged},
        )
        return InviteDetails(
            invite_token=token,
            invite_url=build_invite_url(base_url, token, path),
            invite_token_created_at=created_at,
        )

"""Typed failure outcomes returned (not raised) by the studio services."""

import uuid
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from studio_app.models.enums import MembershipStatus

if TYPE_CHECKING:
    from studio_app.services.join_limits import JoinLimitStatus


class ErrorKind(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    SERVICE_UNAVAILABLE = "service_unavailable"
    PROFILE_NOT_FOUND = "profile_not_found"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_INVITE = "invalid_invite"
    RATE_LIMITED = "rate_limited"
    CONFLICT = "conflict"
    INVALID_STATE = "invalid_state"
    EXHAUSTED_RETRIES = "exhausted_retries"

    @property
    def http_status(self) -> int:
        match self:
            case ErrorKind.UNAUTHENTICATED:
                return 401
            case ErrorKind.SERVICE_UNAVAILABLE:
                return 503
            case ErrorKind.PROFILE_NOT_FOUND | ErrorKind.NOT_FOUND:
                return 404
            case ErrorKind.FORBIDDEN:
                return 403
            case ErrorKind.INVALID_INVITE | ErrorKind.INVALID_STATE:
                return 400
            case ErrorKind.RATE_LIMITED:
                return 429
            case ErrorKind.CONFLICT:
                return 409
            case ErrorKind.EXHAUSTED_RETRIES:
                return 500

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").capitalize()


@dataclass(frozen=True)
class StudioError:
    kind: ErrorKind
    message: str
    join_limit: "JoinLimitStatus | None" = None
    membership_status: MembershipStatus | None = None
    studio_id: uuid.UUID | None = None

    @property
    def status(self) -> int:
        return self.kind.http_status


# Shared messages
DATABASE_NOT_CONFIGURED = "Database is not configured. Set DATABASE_URL to continue."
DATABASE_UNAVAILABLE = (
    "Database is unavailable or out of sync. Run migrations and confirm DATABASE_URL is set."
)
SIGN_IN_REQUIRED = "You must be signed in to access this area."
PROFILE_NOT_FOUND = "User profile not found."

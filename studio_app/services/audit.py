"""Structured log records for join requests and membership decisions."""

import logging
import uuid
from typing import Literal

from studio_app.models.enums import MembershipStatus
from studio_app.services.errors import StudioError

logger = logging.getLogger("studio_app.audit")

JoinFlow = Literal["invite", "studio"]


def _str(value) -> str | None:
    return str(value) if value is not None else None


def log_join_request_result(
    *,
    flow: JoinFlow,
    user_id: uuid.UUID,
    user_email: str | None,
    result,
    studio_id: uuid.UUID | None = None,
) -> None:
    """Log a submit_join_request outcome (JoinRequestSuccess or StudioError)."""
    context = {
        "flow": flow,
        "studio_id": _str(getattr(result, "studio_id", None) or studio_id),
        "user_id": str(user_id),
        "user_email": user_email,
    }

    if not isinstance(result, StudioError):
        logger.info(
            "Join request succeeded",
            extra={
                **context,
                "membership_id": str(result.membership.id),
                "membership_status": result.membership.status.value,
            },
        )
        return

    join_limit = result.join_limit
    logger.warning(
        "Join request failed",
        extra={
            **context,
            "status": result.status,
            "reason": result.message,
            "membership_status": _str(result.membership_status),
            "join_limit": (
                {
                    "limit_reached": join_limit.limit_reached,
                    "recent_count": join_limit.recent_count,
                    "daily_limit": join_limit.daily_limit,
                }
                if join_limit
                else None
            ),
        },
    )


def log_membership_decision(
    *,
    action: str,
    actor_user_id: uuid.UUID,
    actor_email: str | None,
    membership_user_id: uuid.UUID,
    membership_email: str | None,
    membership_id: uuid.UUID,
    resulting_status: MembershipStatus,
    studio_id: uuid.UUID,
) -> None:
    logger.info(
        "Membership decision recorded",
        extra={
            "action": action,
            "studio_id": str(studio_id),
            "actor_user_id": str(actor_user_id),
            "actor_email": actor_email,
            "membership_user_id": str(membership_user_id),
            "membership_email": membership_email,
            "membership_id": str(membership_id),
            "resulting_status": resulting_status.value,
        },
    )

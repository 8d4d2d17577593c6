"""Retry writes of randomly generated unique values (tokens, codes)."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3


class RetriesExhaustedError(Exception):
    def __init__(self, attempts: int):
        super().__init__(f"Unable to generate a unique value after {attempts} attempts")
        self.attempts = attempts


def is_unique_violation(exc: IntegrityError) -> bool:
    """True for unique-constraint violations (asyncpg, psycopg and sqlite wording)."""
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == "23505"
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate key" in message


async def retry_on_unique_violation(
    operation: Callable[[int], Awaitable[T]],
    attempts: int = DEFAULT_ATTEMPTS,
) -> T:
    """Run ``operation(attempt)`` until it stops hitting unique violations.

    ``operation`` must generate a fresh random value on every call and undo its
    own partial writes on failure (e.g. by running inside a savepoint). Any
    other error propagates immediately.
    """
    for attempt in range(1, attempts + 1):
        try:
            return await operation(attempt)
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            logger.info("Unique value collision, retrying (attempt %d/%d)", attempt, attempts)
    raise RetriesExhaustedError(attempts)

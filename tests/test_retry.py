"""Retry helper for writes of random unique values."""

import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError

from studio_app.services.retry import (
    RetriesExhaustedError,
    is_unique_violation,
    retry_on_unique_violation,
)


def _integrity_error(message: str) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, sqlite3.IntegrityError(message))


class _PgError(Exception):
    def __init__(self, sqlstate: str):
        super().__init__("pg error")
        self.sqlstate = sqlstate


def test_is_unique_violation_by_message():
    assert is_unique_violation(_integrity_error("UNIQUE constraint failed: studios.invite_token"))
    assert not is_unique_violation(_integrity_error("NOT NULL constraint failed: studios.name"))


def test_is_unique_violation_by_sqlstate():
    assert is_unique_violation(IntegrityError("INSERT", {}, _PgError("23505")))
    assert not is_unique_violation(IntegrityError("INSERT", {}, _PgError("23503")))


@pytest.mark.asyncio
async def test_retry_succeeds_after_collision():
    attempts: list[int] = []

    async def operation(attempt: int) -> str:
        attempts.append(attempt)
        if attempt == 1:
            raise _integrity_error("UNIQUE constraint failed: studios.invite_token")
        return "ok"

    assert await retry_on_unique_violation(operation) == "ok"
    assert attempts == [1, 2]


@pytest.mark.asyncio
async def test_retry_exhausts():
    async def operation(attempt: int) -> str:
        raise _integrity_error("UNIQUE constraint failed: studios.invite_token")

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await retry_on_unique_violation(operation, attempts=3)
    assert exc_info.value.attempts == 3


@pytest.mark.asyncio
async def test_retry_propagates_other_integrity_errors():
    calls = 0

    async def operation(attempt: int) -> str:
        nonlocal calls
        calls += 1
        raise _integrity_error("FOREIGN KEY constraint failed")

    with pytest.raises(IntegrityError):
        await retry_on_unique_violation(operation)
    assert calls == 1

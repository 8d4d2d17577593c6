"""Invite link details and rotation."""

import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_app.models.enums import MembershipStatus
from studio_app.models.studio import Studio
from studio_app.models.studio_membership import StudioMembership
from studio_app.services import invites as invites_mod
from studio_app.services.errors import ErrorKind, StudioError
from studio_app.services.invites import InvalidBaseUrl, InviteDetails, InviteService
from studio_app.services.memberships import JoinRequestSuccess, MembershipService
from tests.conftest import seed_membership, seed_profile, seed_studio

BASE_URL = "https://studio.example.com"


async def _statuses(db: AsyncSession, studio_id: uuid.UUID) -> list[MembershipStatus]:
    result = await db.scalars(
        select(StudioMembership.status).where(StudioMembership.studio_id == studio_id)
    )
    return sorted(result.all())


async def _token(db: AsyncSession, studio_id: uuid.UUID) -> str:
    return await db.scalar(select(Studio.invite_token).where(Studio.id == studio_id))


@pytest.mark.asyncio
async def test_invite_details(db: AsyncSession):
    owner = await seed_profile(db, prefix="owner")
    studio, _ = await seed_studio(db, owner)

    details = await InviteService(db).get_invite_details(studio.id, BASE_URL)

    assert isinstance(details, InviteDetails)
    assert details.invite_token == studio.invite_token
    assert details.invite_url == f"{BASE_URL}/invite?inviteToken={studio.invite_token}"


@pytest.mark.asyncio
async def test_invite_details_unknown_studio(db: AsyncSession):
    result = await InviteService(db).get_invite_details(uuid.uuid4(), BASE_URL)
    assert isinstance(result, StudioError)
    assert result.kind is ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_rotation_purges_denied_and_removed(db: AsyncSession):
    owner = await seed_profile(db, prefix="owner")
    studio, _ = await seed_studio(db, owner)
    old_token = studio.invite_token
    await seed_membership(db, studio, status=MembershipStatus.PENDING)
    await seed_membership(db, studio, status=MembershipStatus.DENIED)
    await seed_membership(db, studio, status=MembershipStatus.REMOVED)
    await seed_membership(db, studio, status=MembershipStatus.APPROVED)

    details = await InviteService(db).rotate_invite(studio.id, BASE_URL)

    assert isinstance(details, InviteDetails)
    assert details.invite_token != old_token
    assert await _token(db, studio.id) == details.invite_token
    assert await _statuses(db, studio.id) == sorted(
        [MembershipStatus.APPROVED, MembershipStatus.APPROVED, MembershipStatus.PENDING]
    )


@pytest.mark.asyncio
async def test_rotation_leaves_other_studios_alone(db: AsyncSession):
    owner_a = await seed_profile(db, prefix="owner-a")
    owner_b = await seed_profile(db, prefix="owner-b")
    studio_a, _ = await seed_studio(db, owner_a, name="A")
    studio_b, _ = await seed_studio(db, owner_b, name="B")
    await seed_membership(db, studio_b, status=MembershipStatus.DENIED)
    token_b = studio_b.invite_token

    await InviteService(db).rotate_invite(studio_a.id, BASE_URL)

    assert MembershipStatus.DENIED in await _statuses(db, studio_b.id)
    assert await _token(db, studio_b.id) == token_b


@pytest.mark.asyncio
async def test_denied_user_can_rejoin_after_rotation(db: AsyncSession):
    owner = await seed_profile(db, prefix="owner")
    studio, _ = await seed_studio(db, owner)
    old_token = studio.invite_token
    denied = await seed_membership(db, studio, status=MembershipStatus.DENIED)
    user_id = denied.user_id
    service = MembershipService(db)

    blocked = await service.submit_join_request(old_token, user_id)
    assert blocked.kind is ErrorKind.CONFLICT

    details = await InviteService(db).rotate_invite(studio.id, BASE_URL)

    stale = await service.submit_join_request(old_token, user_id)
    assert isinstance(stale, StudioError)
    assert stale.kind is ErrorKind.INVALID_INVITE

    result = await service.submit_join_request(details.invite_token, user_id)
    assert isinstance(result, JoinRequestSuccess)
    assert result.membership.status == MembershipStatus.PENDING


@pytest.mark.asyncio
async def test_rotation_retries_token_collisions(db: AsyncSession, monkeypatch):
    owner_a = await seed_profile(db, prefix="owner-a")
    owner_b = await seed_profile(db, prefix="owner-b")
    studio_a, _ = await seed_studio(db, owner_a, name="A")
    studio_b, _ = await seed_studio(db, owner_b, name="B")
    await seed_membership(db, studio_a, status=MembershipStatus.DENIED)

    tokens = iter([studio_b.invite_token, studio_b.invite_token, "f" * 96])
    monkeypatch.setattr(invites_mod, "generate_invite_token", lambda: next(tokens))

    details = await InviteService(db).rotate_invite(studio_a.id, BASE_URL)

    assert isinstance(details, InviteDetails)
    assert details.invite_token == "f" * 96
    assert await _token(db, studio_a.id) == "f" * 96
    assert MembershipStatus.DENIED not in await _statuses(db, studio_a.id)


@pytest.mark.asyncio
async def test_rotation_gives_up_after_three_collisions(db: AsyncSession, monkeypatch):
    owner_a = await seed_profile(db, prefix="owner-a")
    owner_b = await seed_profile(db, prefix="owner-b")
    studio_a, _ = await seed_studio(db, owner_a, name="A")
    studio_b, _ = await seed_studio(db, owner_b, name="B")
    await seed_membership(db, studio_a, status=MembershipStatus.DENIED)
    studio_a_id, original = studio_a.id, studio_a.invite_token
    taken = studio_b.invite_token

    calls = 0

    def _colliding_token() -> str:
        nonlocal calls
        calls += 1
        return taken

    monkeypatch.setattr(invites_mod, "generate_invite_token", _colliding_token)

    result = await InviteService(db).rotate_invite(studio_a_id, BASE_URL)

    assert isinstance(result, StudioError)
    assert result.kind is ErrorKind.EXHAUSTED_RETRIES
    assert result.status == 500
    assert calls == 3
    # Nothing from the failed attempts is visible
    assert await _token(db, studio_a_id) == original
    assert MembershipStatus.DENIED in await _statuses(db, studio_a_id)


@pytest.mark.asyncio
async def test_rotation_rejects_bad_base_url_before_writing(db: AsyncSession):
    owner = await seed_profile(db, prefix="owner")
    studio, _ = await seed_studio(db, owner)
    original = studio.invite_token

    with pytest.raises(InvalidBaseUrl):
        await InviteService(db).rotate_invite(studio.id, "not a url")

    assert await _token(db, studio.id) == original


@pytest.mark.asyncio
async def test_rotation_unknown_studio(db: AsyncSession):
    result = await InviteService(db).rotate_invite(uuid.uuid4(), BASE_URL)
    assert result.kind is ErrorKind.NOT_FOUND

"""Shared test fixtures.

Each test gets its own SQLite file database (aiosqlite) with real SAVEPOINT
support, wired into the app through ``app.state.database``.
"""

import os
import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

# Ensure mock mode is on for tests
os.environ.setdefault("COGNITO_MOCK", "true")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_BASE_URL", "")

from studio_app.core.config import settings  # noqa: E402
from studio_app.core.security import create_mock_access_token  # noqa: E402
from studio_app.db.base import Base  # noqa: E402
from studio_app.db.session import Database  # noqa: E402
from studio_app.main import app  # noqa: E402
from studio_app.models.enums import GlobalRole, MembershipRole, MembershipStatus  # noqa: E402
from studio_app.models.profile import UserProfile  # noqa: E402
from studio_app.models.studio import Studio  # noqa: E402
from studio_app.models.studio_membership import StudioMembership  # noqa: E402
from studio_app.services.invites import generate_invite_token  # noqa: E402


def _sqlite_engine(path: str):
    """Async SQLite engine where BEGIN/SAVEPOINT are issued by SQLAlchemy."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}")

    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    engine = _sqlite_engine(str(tmp_path / "studio.db"))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    database = Database(str(engine.url), engine=engine)
    yield database
    await database.dispose()


@pytest.fixture
async def db(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Service-level session; tests flush and inspect without committing."""
    async with database.session() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client bound to the per-test database.

    ASGITransport does not run the lifespan, so the handle is set directly.
    """
    app.state.database = database
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        app.state.database = None


@pytest.fixture
async def unconfigured_client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client with no database configured."""
    app.state.database = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _uid() -> str:
    return uuid.uuid4().hex[:8]


def make_token(
    sub: str = "test-sub",
    email: str = "test@example.com",
    name: str | None = None,
    groups: list[str] | None = None,
) -> str:
    """Generate a mock JWT for testing."""
    return create_mock_access_token(sub=sub, email=email, name=name, groups=groups)


def auth_headers(
    sub: str = "test-sub",
    email: str = "test@example.com",
    name: str | None = None,
    groups: list[str] | None = None,
) -> dict:
    """Return Authorization headers with a mock JWT."""
    token = make_token(sub=sub, email=email, name=name, groups=groups)
    return {"Authorization": f"Bearer {token}"}


def site_admin_headers(sub: str | None = None) -> dict:
    sub = sub or f"site-admin-{_uid()}"
    return auth_headers(
        sub=sub, email=f"{sub}@example.com", groups=[settings.SITE_ADMIN_GROUP]
    )


async def seed_profile(
    db: AsyncSession,
    *,
    prefix: str = "user",
    global_role: GlobalRole = GlobalRole.USER,
) -> UserProfile:
    uid = _uid()
    profile = UserProfile(
        external_id=f"{prefix}-sub-{uid}",
        email=f"{prefix}-{uid}@example.com",
        name=f"{prefix.title()} {uid}",
        global_role=global_role,
    )
    db.add(profile)
    await db.flush()
    return profile


async def seed_studio(
    db: AsyncSession,
    owner: UserProfile,
    *,
    name: str = "Test Studio",
    owner_membership: bool = True,
) -> tuple[Studio, StudioMembership | None]:
    """A studio, by default with the owner's Approved/Admin membership."""
    studio = Studio(name=name, owner_id=owner.id, invite_token=generate_invite_token())
    db.add(studio)
    await db.flush()
    if not owner_membership:
        return studio, None

    membership = StudioMembership(
        studio_id=studio.id,
        user_id=owner.id,
        role=MembershipRole.ADMIN,
        status=MembershipStatus.APPROVED,
    )
    db.add(membership)
    await db.flush()
    return studio, membership


async def seed_membership(
    db: AsyncSession,
    studio: Studio,
    *,
    status: MembershipStatus = MembershipStatus.PENDING,
    role: MembershipRole = MembershipRole.MEMBER,
    created_at: datetime | None = None,
    prefix: str = "member",
) -> StudioMembership:
    profile = await seed_profile(db, prefix=prefix)
    membership = StudioMembership(
        studio_id=studio.id,
        user_id=profile.id,
        role=role,
        status=status,
        created_at=created_at or datetime.now(UTC),
    )
    db.add(membership)
    await db.flush()
    return membership

"""FastAPI dependency chain: Database handle → session; JWT → Identity."""

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_app.core.config import settings
from studio_app.core.identity import ClaimsIdentityProvider, Identity
from studio_app.core.security import decode_access_token
from studio_app.db.session import Database
from studio_app.services.join_limits import JoinRateLimiter
from studio_app.services.memberships import MembershipService

bearer_scheme = HTTPBearer(auto_error=False)


def get_database(request: Request) -> Database | None:
    """The process-wide handle created in the lifespan; None when not configured."""
    return getattr(request.app.state, "database", None)


async def get_db(
    database: Database | None = Depends(get_database),
) -> AsyncGenerator[AsyncSession | None, None]:
    """Yield an async DB session. Commits on success, rolls back on error.

    Yields None when no database is configured so the access checks can
    answer 503 instead of failing at import/startup.
    """
    if database is None:
        yield None
        return

    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity | None:
    """Verify the Bearer token. No header means an anonymous caller (None)."""
    if credentials is None:
        return None

    try:
        claims = await decode_access_token(credentials.credentials)
    except JWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}") from e

    if not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Token missing sub claim")

    return Identity.from_claims(claims)


def get_identity_provider(
    identity: Identity | None = Depends(get_identity),
) -> ClaimsIdentityProvider:
    return ClaimsIdentityProvider(identity)


def get_identity_id(identity: Identity | None = Depends(get_identity)) -> str | None:
    return identity.external_id if identity else None


def get_membership_service(
    db: AsyncSession | None = Depends(get_db),
) -> MembershipService | None:
    if db is None:
        return None
    limiter = JoinRateLimiter(
        db,
        daily_limit=settings.DAILY_JOIN_REQUEST_LIMIT,
        window_ms=settings.JOIN_LIMIT_WINDOW_SECONDS * 1000,
    )
    return MembershipService(db, limiter)


def get_base_url(request: Request) -> str:
    """Base for shareable links: APP_BASE_URL, else the request origin."""
    if settings.APP_BASE_URL:
        return settings.APP_BASE_URL
    return f"{request.url.scheme}://{request.url.netloc}"

"""JWT verification with dual-mode support (real Cognito JWKS + mock HS256)."""

import time

import httpx
from jose import JWTError, jwt

from studio_app.core.config import settings

_jwks_cache: dict | None = None
_jwks_fetched_at: float = 0.0
JWKS_REFRESH_INTERVAL = 3600  # 1 hour


def _issuer() -> str:
    return (
        f"https://cognito-idp.{settings.COGNITO_REGION}.amazonaws.com"
        f"/{settings.COGNITO_USER_POOL_ID}"
    )


async def _fetch_jwks() -> dict:
    global _jwks_cache, _jwks_fetched_at
    async with httpx.AsyncClient(timeout=10.0) as client:
        resp = await client.get(f"{_issuer()}/.well-known/jwks.json")
        resp.raise_for_status()
    _jwks_cache = resp.json()
    _jwks_fetched_at = time.time()
    return _jwks_cache


async def _get_jwks() -> dict:
    if _jwks_cache is None or (time.time() - _jwks_fetched_at) > JWKS_REFRESH_INTERVAL:
        return await _fetch_jwks()
    return _jwks_cache


async def decode_access_token(token: str) -> dict:
    """Decode and verify an access token. Returns the claims dict."""
    if settings.COGNITO_MOCK:
        return _decode_mock_token(token)
    return await _decode_cognito_token(token)


async def _decode_cognito_token(token: str) -> dict:
    """Verify a real Cognito JWT using JWKS."""
    jwks_data = await _get_jwks()

    unverified_header = jwt.get_unverified_header(token)
    kid = unverified_header.get("kid")

    key = next((k for k in jwks_data.get("keys", []) if k.get("kid") == kid), None)
    if key is None:
        raise JWTError("Key not found in JWKS")

    # Cognito access tokens carry client_id instead of aud
    claims = jwt.decode(
        token,
        key,
        algorithms=["RS256"],
        issuer=_issuer(),
        options={"verify_aud": False, "verify_at_hash": False},
    )

    if claims.get("token_use") != "access":
        raise JWTError("Not an access token")
    if settings.COGNITO_CLIENT_ID and claims.get("client_id") != settings.COGNITO_CLIENT_ID:
        raise JWTError("Token issued for a different client")

    return claims


def _decode_mock_token(token: str) -> dict:
    """Decode a mock JWT signed with SECRET_KEY (for local dev/testing)."""
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=["HS256"],
        options={"verify_aud": False, "verify_iss": False},
    )


def create_mock_access_token(
    sub: str,
    email: str | None = "test@example.com",
    name: str | None = None,
    groups: list[str] | None = None,
    expires_in: int = 900,
) -> str:
    """Create a mock JWT for testing. Only usable when COGNITO_MOCK=true."""
    payload: dict = {
        "sub": sub,
        "token_use": "access",
        "iat": int(time.time()),
        "exp": int(time.time()) + expires_in,
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    if groups:
        payload["cognito:groups"] = groups
    return jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")

"""Shared helpers for API tests."""

import uuid
from urllib.parse import parse_qs, urlsplit

from httpx import AsyncClient

from tests.conftest import auth_headers


def new_user_headers(prefix: str = "user") -> dict:
    """Authorization headers for a fresh identity (sub/email unique per call)."""
    unique = uuid.uuid4().hex[:8]
    sub = f"{prefix}-sub-{unique}"
    return auth_headers(sub=sub, email=f"{prefix}-{unique}@example.com", name=f"{prefix} {unique}")


def invite_token_from(url: str) -> str:
    return parse_qs(urlsplit(url).query)["inviteToken"][0]


async def create_studio_get_headers(
    client: AsyncClient, *, name: str = "Test Studio"
) -> tuple[dict, dict]:
    """Create a studio via the API and return (owner headers, response body)."""
    headers = new_user_headers("owner")
    resp = await client.post("/api/v1/studios/", json={"name": name}, headers=headers)
    assert resp.status_code == 201, resp.text
    return headers, resp.json()


async def request_to_join(client: AsyncClient, token: str) -> tuple[dict, dict]:
    """Submit a join request as a fresh user; return (headers, response body)."""
    headers = new_user_headers("joiner")
    resp = await client.post("/api/v1/invite", json={"invite_token": token}, headers=headers)
    assert resp.status_code == 201, resp.text
    return headers, resp.json()

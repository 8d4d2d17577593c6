"""Identity provider seam: who is calling, and what do we know about them."""

from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlencode

from studio_app.core.config import settings


@dataclass(frozen=True)
class Identity:
    external_id: str
    email: str | None = None
    name: str | None = None
    is_site_admin: bool = False

    @classmethod
    def from_claims(cls, claims: dict) -> "Identity":
        """Build an identity from verified token claims.

        Cognito access tokens carry no ``email`` or ``name`` claim, so both stay
        None for real tokens and a first-contact profile is created without
        them; later identities that do carry them fill the blanks. Mock tokens
        include both.
        """
        groups = claims.get("cognito:groups") or []
        return cls(
            external_id=claims["sub"],
            email=claims.get("email"),
            name=claims.get("name") or claims.get("email"),
            is_site_admin=settings.SITE_ADMIN_GROUP in groups,
        )


class IdentityProvider(Protocol):
    async def get_user(self, external_id: str) -> Identity | None: ...


class ClaimsIdentityProvider:
    """Answers only for the subject of the verified request token."""

    def __init__(self, identity: Identity | None):
        self.identity = identity

    async def get_user(self, external_id: str) -> Identity | None:
        if self.identity is not None and self.identity.external_id == external_id:
            return self.identity
        return None


def sign_in_url(return_back_url: str) -> str:
    """Relative sign-in location carrying the page to come back to."""
    return f"{settings.SIGN_IN_PATH}?{urlencode({'redirect_url': return_back_url})}"

"""CORS configuration for the studio API."""

from studio_app.core.config import settings


def get_cors_config() -> dict:
    """Return CORS middleware kwargs for FastAPI."""
    return {
        "allow_origins": settings.allowed_origins_list,
        "allow_credentials": False,
        "allow_methods": ["GET", "POST", "OPTIONS"],
        "allow_headers": ["Authorization", "Content-Type", "X-Request-Id"],
        # Redirect targets from the access gate are read by the UI
        "expose_headers": ["Location", "X-Request-Id"],
    }

"""
CORS policy for the backend and the Yakoa proxy.

Development accepts any origin; production accepts only the configured
frontend origins. The returned dicts are keyword arguments for FastAPI's
CORSMiddleware.
"""

from typing import Any, Dict, List, Optional

from .logging_config import get_logger
from .settings import Settings, settings as default_settings

logger = get_logger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-Requested-With", "Accept"]


def get_cors_config(
    config: Optional[Settings] = None,
    extra_headers: Optional[List[str]] = None
) -> Dict[str, Any]:
    """
    Get CORS middleware options based on environment.

    Args:
        config: Settings instance (default: module singleton)
        extra_headers: Additional allowed request headers, e.g. X-API-KEY

    Returns:
        Dict[str, Any]: Options for ``app.add_middleware(CORSMiddleware, **opts)``
    """
    config = config or default_settings
    headers = CORS_HEADERS + list(extra_headers or [])

    if config.is_development:
        # Credentials forbid "*", so reflect any origin through the regex
        return {
            "allow_origin_regex": ".*",
            "allow_credentials": True,
            "allow_methods": CORS_METHODS,
            "allow_headers": headers,
        }

    return {
        "allow_origins": config.get_cors_origins(),
        "allow_credentials": True,
        "allow_methods": CORS_METHODS,
        "allow_headers": headers,
    }


def is_origin_allowed(origin: Optional[str], config: Optional[Settings] = None) -> bool:
    """
    Check a request origin against the active policy.

    Requests without an Origin header (curl, server-to-server, mobile apps)
    are always allowed.
    """
    config = config or default_settings

    if not origin or config.is_development:
        return True

    if origin in config.get_cors_origins():
        return True

    logger.warning(f"CORS blocked origin: {origin}")
    return False

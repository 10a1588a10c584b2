"""Rate limiting for the manual trigger endpoints using SlowAPI."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from translation_service.config import get_settings

settings = get_settings()


def get_access_key_or_ip(request: Request) -> str:
    """
    Get rate limit key from the access key or IP address.

    Uses the access key if authenticated, falls back to IP address.
    """
    access_key = getattr(request.state, "access_key", None)
    if access_key is not None:
        return f"key:{access_key.id}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_access_key_or_ip,
    storage_uri=settings.rate_limit_storage_url,
    strategy="fixed-window",
)


def rate_limit_trigger():
    """Rate limit for endpoints that spend translation quota."""
    return limiter.limit(
        f"{settings.rate_limit_per_minute}/minute;{settings.rate_limit_per_hour}/hour",
        key_func=get_access_key_or_ip,
    )

"""
Request throttling for the storefront API

A single slowapi Limiter keyed on the caller's address. Counters live in
process memory, so limits are per worker. Routes opt into tighter limits with
@limiter.limit(...); everything else gets RATE_LIMIT_DEFAULT.
"""
import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from storefront.core.config import settings

logger = logging.getLogger(__name__)

# Used when the exception does not carry the limit that tripped
DEFAULT_RETRY_SECONDS = 60


def get_client_ip(request: Request) -> str:
    """Caller address, honouring the left-most X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_ip,
    enabled=settings.RATE_LIMIT_ENABLED,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)


def retry_after_seconds(exc: RateLimitExceeded) -> int:
    """Length of the window of the limit that was hit, in seconds."""
    limit = getattr(exc, "limit", None)
    if limit is None or getattr(limit, "limit", None) is None:
        return DEFAULT_RETRY_SECONDS
    return int(limit.limit.get_expiry())


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render a 429 in the API error shape with a matching Retry-After header."""
    seconds = retry_after_seconds(exc)
    logger.warning(
        f"Rate limit {exc.detail} exceeded by {get_client_ip(request)} on {request.url.path}"
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": f"Too many requests. Please try again in {seconds} seconds.",
            "retry_after": seconds,
        },
        headers={"Retry-After": str(seconds)},
    )

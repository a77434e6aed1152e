"""Rate limiting for endpoints that trigger outbound requests.

Uses SlowAPI, keyed by client IP address.
"""

from collections.abc import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from apoxer.settings import get_settings

limiter = Limiter(key_func=get_remote_address)

# Format: "requests/period"
IMAGE_COLORS_LIMIT = "30/minute"
DEV_SEED_LIMIT = "5/minute"


def create_rate_limit_dependency(limit_string: str, name: str) -> Callable:
    """Create a rate limit dependency for use on FastAPI routes.

    Args:
        limit_string: Rate limit in format "requests/period" (e.g., "5/minute")
        name: Unique name for this rate limit (used by SlowAPI for tracking)

    Returns:
        An async dependency function that applies rate limiting
    """
    # SlowAPI tracks limits by function identity, so decorate once here
    @limiter.limit(limit_string)
    async def _check_limit(request: Request, response: Response) -> None:
        pass

    _check_limit.__name__ = f"_check_limit_{name}"

    async def rate_limit_dependency(request: Request, response: Response) -> None:
        """Apply rate limiting to this request."""
        if not get_settings().rate_limiting_enabled:
            return

        await _check_limit(request, response)

    return rate_limit_dependency


image_colors_rate_limit = create_rate_limit_dependency(IMAGE_COLORS_LIMIT, "image_colors")
dev_seed_rate_limit = create_rate_limit_dependency(DEV_SEED_LIMIT, "dev_seed")

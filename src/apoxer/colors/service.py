"""Image color service: validate a URL, download the image, extract its colors."""

import asyncio
import logging

import httpx

from apoxer.colors.palette import extract_colors
from apoxer.settings import get_settings

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


class ImageColorsError(Exception):
    """Base error for image color extraction."""

    status_code = 500


class InvalidImageUrlError(ImageColorsError):
    """The caller supplied a missing or unusable URL."""

    status_code = 400


class ImageFetchError(ImageColorsError):
    """The image could not be downloaded, or the response is not an image."""


class PaletteExtractionError(ImageColorsError):
    """The downloaded bytes could not be turned into a palette."""


def validate_image_url(url: str | None) -> str:
    """Check that a URL is present, parseable and http(s).

    Returns:
        The URL unchanged

    Raises:
        InvalidImageUrlError: With the message to show the caller
    """
    if not url:
        raise InvalidImageUrlError("Missing 'url' query parameter")

    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise InvalidImageUrlError("Invalid URL format") from e

    if not parsed.scheme:
        raise InvalidImageUrlError("Invalid URL format")
    if parsed.scheme not in ALLOWED_SCHEMES:
        raise InvalidImageUrlError("Only http and https URLs are allowed")
    if not parsed.host:
        raise InvalidImageUrlError("Invalid URL format")

    return url


def check_response(response: httpx.Response, max_bytes: int) -> None:
    """Reject a response from its status line and headers alone."""
    if not 200 <= response.status_code < 300:
        raise ImageFetchError(
            f"Failed to fetch image: {response.status_code} {response.reason_phrase}"
        )

    content_type = response.headers.get("content-type", "")
    if not content_type.startswith("image/"):
        raise ImageFetchError(f"Invalid content type: {content_type}. Expected an image.")

    content_length = response.headers.get("content-length")
    if content_length is not None and content_length.isdigit():
        if int(content_length) > max_bytes:
            raise ImageFetchError(
                f"Image too large: {content_length} bytes (limit {max_bytes})"
            )


async def read_limited(response: httpx.Response, max_bytes: int) -> bytes:
    """Read a streamed body, giving up as soon as it passes max_bytes."""
    chunks = []
    received = 0
    async for chunk in response.aiter_bytes():
        received += len(chunk)
        if received > max_bytes:
            raise ImageFetchError(f"Image too large: more than {max_bytes} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


async def fetch_image(url: str) -> bytes:
    """Download an image.

    The body is streamed so that oversized images are abandoned without
    being buffered in full.

    Raises:
        ImageFetchError: On transport errors, non-2xx responses, non-image
            content types, or images above the configured size limit
    """
    settings = get_settings()

    try:
        async with httpx.AsyncClient(
            timeout=settings.image_fetch_timeout_seconds,
            follow_redirects=True,
        ) as client:
            async with client.stream(
                "GET",
                url,
                headers={"User-Agent": settings.image_fetch_user_agent},
            ) as response:
                check_response(response, settings.image_max_bytes)
                return await read_limited(response, settings.image_max_bytes)
    except httpx.HTTPError as e:
        raise ImageFetchError(f"Failed to fetch image: {e}") from e


async def get_image_colors(url: str | None, max_colors: int = 3) -> list[str]:
    """Get up to max_colors prominent colors of the image at url.

    Returns:
        ``#rrggbb`` strings in order Vibrant, Muted, DarkVibrant, DarkMuted,
        LightVibrant, LightMuted (possibly empty)

    Raises:
        InvalidImageUrlError: If the URL is missing or not http(s)
        ImageFetchError: If the image cannot be downloaded
        PaletteExtractionError: If the image cannot be decoded
    """
    url = validate_image_url(url)
    data = await fetch_image(url)

    try:
        colors = await asyncio.to_thread(extract_colors, data, max_colors)
    except ValueError as e:
        raise PaletteExtractionError(str(e)) from e

    logger.debug(f"Extracted {len(colors)} colors from {url}")
    return colors

"""Image color extraction endpoint."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from apoxer.api.rate_limit import image_colors_rate_limit
from apoxer.colors import ImageColorsError, get_image_colors

logger = logging.getLogger(__name__)

router = APIRouter(tags=["image-colors"])


@router.get("/image-colors", dependencies=[Depends(image_colors_rate_limit)])
async def image_colors(url: str | None = Query(default=None)) -> JSONResponse:
    """Get up to three prominent colors of a remote image.

    Errors keep the response shape: ``{"error": ..., "colors": []}`` with
    400 for a bad URL and 500 for fetch or extraction failures.
    """
    try:
        colors = await get_image_colors(url)
    except ImageColorsError as e:
        if e.status_code >= 500:
            logger.error(f"Error extracting colors from {url}: {e}")
        return JSONResponse(
            status_code=e.status_code,
            content={"error": str(e), "colors": []},
        )

    return JSONResponse(content={"colors": colors})

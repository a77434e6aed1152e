"""Prominent color extraction for game artwork."""

from apoxer.colors.palette import SWATCH_ORDER, extract_colors
from apoxer.colors.service import (
    ImageColorsError,
    ImageFetchError,
    InvalidImageUrlError,
    PaletteExtractionError,
    get_image_colors,
    validate_image_url,
)

__all__ = [
    "SWATCH_ORDER",
    "ImageColorsError",
    "ImageFetchError",
    "InvalidImageUrlError",
    "PaletteExtractionError",
    "extract_colors",
    "get_image_colors",
    "validate_image_url",
]

"""Prominent color extraction.

Reduces an image to a small median-cut palette with Pillow, then picks six
named swatches (Vibrant, Muted, DarkVibrant, DarkMuted, LightVibrant,
LightMuted) by how close each palette color is to a target luma and
saturation, weighted by how much of the image it covers.
"""

import colorsys
import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

# Preference order of swatches in API responses
SWATCH_ORDER = ("Vibrant", "Muted", "DarkVibrant", "DarkMuted", "LightVibrant", "LightMuted")

PALETTE_SIZE = 16
MAX_DIMENSION = 100
MIN_ALPHA = 125
WHITE_THRESHOLD = 250

TARGET_DARK_LUMA = 0.26
MAX_DARK_LUMA = 0.45
MIN_LIGHT_LUMA = 0.55
TARGET_LIGHT_LUMA = 0.74
MIN_NORMAL_LUMA = 0.3
TARGET_NORMAL_LUMA = 0.5
MAX_NORMAL_LUMA = 0.7
TARGET_MUTED_SATURATION = 0.3
MAX_MUTED_SATURATION = 0.4
TARGET_VIBRANT_SATURATION = 1.0
MIN_VIBRANT_SATURATION = 0.35

WEIGHT_SATURATION = 3.0
WEIGHT_LUMA = 6.5
WEIGHT_POPULATION = 0.5


@dataclass(frozen=True)
class Swatch:
    """A palette color and the number of sampled pixels it stands for."""

    rgb: tuple[int, int, int]
    population: int

    @property
    def hex(self) -> str:
        return "#{:02x}{:02x}{:02x}".format(*self.rgb)

    @property
    def hsl(self) -> tuple[float, float, float]:
        r, g, b = (c / 255 for c in self.rgb)
        h, lightness, s = colorsys.rgb_to_hls(r, g, b)
        return h, s, lightness


@dataclass(frozen=True)
class _Target:
    target_luma: float
    min_luma: float
    max_luma: float
    target_saturation: float
    min_saturation: float
    max_saturation: float


# Selection order; earlier picks are excluded from later ones
_TARGETS: dict[str, _Target] = {
    "Vibrant": _Target(
        TARGET_NORMAL_LUMA, MIN_NORMAL_LUMA, MAX_NORMAL_LUMA,
        TARGET_VIBRANT_SATURATION, MIN_VIBRANT_SATURATION, 1.0,
    ),
    "LightVibrant": _Target(
        TARGET_LIGHT_LUMA, MIN_LIGHT_LUMA, 1.0,
        TARGET_VIBRANT_SATURATION, MIN_VIBRANT_SATURATION, 1.0,
    ),
    "DarkVibrant": _Target(
        TARGET_DARK_LUMA, 0.0, MAX_DARK_LUMA,
        TARGET_VIBRANT_SATURATION, MIN_VIBRANT_SATURATION, 1.0,
    ),
    "Muted": _Target(
        TARGET_NORMAL_LUMA, MIN_NORMAL_LUMA, MAX_NORMAL_LUMA,
        TARGET_MUTED_SATURATION, 0.0, MAX_MUTED_SATURATION,
    ),
    "LightMuted": _Target(
        TARGET_LIGHT_LUMA, MIN_LIGHT_LUMA, 1.0,
        TARGET_MUTED_SATURATION, 0.0, MAX_MUTED_SATURATION,
    ),
    "DarkMuted": _Target(
        TARGET_DARK_LUMA, 0.0, MAX_DARK_LUMA,
        TARGET_MUTED_SATURATION, 0.0, MAX_MUTED_SATURATION,
    ),
}


def _invert_diff(value: float, target: float) -> float:
    return 1 - abs(value - target)


def _score(
    saturation: float,
    target_saturation: float,
    luma: float,
    target_luma: float,
    population: int,
    max_population: int,
) -> float:
    weighted = (
        (_invert_diff(saturation, target_saturation), WEIGHT_SATURATION),
        (_invert_diff(luma, target_luma), WEIGHT_LUMA),
        (population / max_population if max_population else 0.0, WEIGHT_POPULATION),
    )
    return sum(v * w for v, w in weighted) / sum(w for _, w in weighted)


def _hsl_to_rgb(h: float, s: float, lightness: float) -> tuple[int, int, int]:
    r, g, b = colorsys.hls_to_rgb(h, lightness, s)
    return round(r * 255), round(g * 255), round(b * 255)


def quantize(image: Image.Image, palette_size: int = PALETTE_SIZE) -> list[Swatch]:
    """Reduce an image to at most palette_size swatches.

    Mostly transparent and near-white pixels are ignored, matching what a
    viewer perceives as the image's colors.
    """
    sample = image.convert("RGBA")
    sample.thumbnail((MAX_DIMENSION, MAX_DIMENSION))

    counts = sample.getcolors(maxcolors=sample.width * sample.height) or []
    pixels: list[tuple[int, int, int]] = []
    for count, (r, g, b, a) in counts:
        if a < MIN_ALPHA:
            continue
        if r > WHITE_THRESHOLD and g > WHITE_THRESHOLD and b > WHITE_THRESHOLD:
            continue
        pixels.extend([(r, g, b)] * count)

    if not pixels:
        return []

    strip = Image.new("RGB", (len(pixels), 1))
    strip.putdata(pixels)
    reduced = strip.quantize(colors=palette_size, method=Image.Quantize.MEDIANCUT)

    palette = reduced.getpalette() or []
    swatches = []
    for count, index in reduced.getcolors() or []:
        r, g, b = palette[index * 3 : index * 3 + 3]
        swatches.append(Swatch(rgb=(r, g, b), population=count))
    return swatches


def select_swatches(swatches: list[Swatch]) -> dict[str, Swatch]:
    """Pick the named swatches from a palette.

    Returns:
        Mapping of swatch name to swatch; names with no suitable color are absent
    """
    max_population = max((s.population for s in swatches), default=0)
    selected: dict[str, Swatch] = {}

    for name, target in _TARGETS.items():
        best: Swatch | None = None
        best_score = 0.0
        for swatch in swatches:
            _, saturation, luma = swatch.hsl
            if not (target.min_saturation <= saturation <= target.max_saturation):
                continue
            if not (target.min_luma <= luma <= target.max_luma):
                continue
            if swatch in selected.values():
                continue
            score = _score(
                saturation,
                target.target_saturation,
                luma,
                target.target_luma,
                swatch.population,
                max_population,
            )
            if best is None or score > best_score:
                best, best_score = swatch, score
        if best is not None:
            selected[name] = best

    # Derive a missing Vibrant/DarkVibrant from the other one
    if "Vibrant" not in selected and "DarkVibrant" in selected:
        h, s, _ = selected["DarkVibrant"].hsl
        selected["Vibrant"] = Swatch(rgb=_hsl_to_rgb(h, s, TARGET_NORMAL_LUMA), population=0)
    elif "DarkVibrant" not in selected and "Vibrant" in selected:
        h, s, _ = selected["Vibrant"].hsl
        selected["DarkVibrant"] = Swatch(rgb=_hsl_to_rgb(h, s, TARGET_DARK_LUMA), population=0)

    return selected


def extract_colors(data: bytes, max_colors: int = 3) -> list[str]:
    """Extract up to max_colors prominent colors from encoded image bytes.

    Args:
        data: Encoded image (any format Pillow can decode)
        max_colors: Maximum number of colors to return

    Returns:
        Lowercase ``#rrggbb`` strings in swatch preference order

    Raises:
        ValueError: If the bytes are not a decodable image
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            swatches = quantize(image)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValueError(f"Could not decode image: {e}") from e

    selected = select_swatches(swatches)
    colors = [selected[name].hex for name in SWATCH_ORDER if name in selected]
    return colors[:max_colors]

"""Tests for prominent color extraction."""

import io

import pytest
from PIL import Image

from apoxer.colors.palette import Swatch, extract_colors, quantize, select_swatches


def encode(image: Image.Image, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def solid(color: tuple[int, ...], mode: str = "RGB", size: tuple[int, int] = (64, 64)) -> bytes:
    return encode(Image.new(mode, size, color))


def rgb(hex_color: str) -> tuple[int, int, int]:
    return tuple(int(hex_color[i : i + 2], 16) for i in (1, 3, 5))


class TestExtractColors:
    """Tests for extract_colors."""

    def test_vibrant_red(self):
        colors = extract_colors(solid((255, 0, 0)))

        assert 1 <= len(colors) <= 3
        r, g, b = rgb(colors[0])
        assert r > 200 and g < 40 and b < 40

    def test_colors_are_lowercase_hex(self):
        colors = extract_colors(solid((30, 144, 255)))
        for color in colors:
            assert len(color) == 7
            assert color.startswith("#")
            assert color == color.lower()

    def test_max_colors(self):
        image = Image.new("RGB", (60, 60))
        for x, color in enumerate([(220, 20, 60), (70, 90, 110), (20, 60, 20)]):
            image.paste(color, (x * 20, 0, x * 20 + 20, 60))
        data = encode(image)

        assert len(extract_colors(data, max_colors=1)) == 1
        assert len(extract_colors(data, max_colors=3)) <= 3

    def test_white_image_has_no_colors(self):
        assert extract_colors(solid((255, 255, 255))) == []

    def test_transparent_image_has_no_colors(self):
        assert extract_colors(solid((255, 0, 0, 0), mode="RGBA")) == []

    def test_jpeg_input(self):
        colors = extract_colors(encode(Image.new("RGB", (32, 32), (0, 160, 0)), "JPEG"))
        assert colors

    def test_undecodable_bytes(self):
        with pytest.raises(ValueError):
            extract_colors(b"definitely not an image")

    def test_oversized_canvas_is_rejected(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

        with pytest.raises(ValueError, match="Could not decode image"):
            extract_colors(solid((255, 0, 0), size=(40, 40)))


class TestQuantize:
    """Tests for quantize."""

    def test_population_covers_visible_pixels(self):
        image = Image.new("RGBA", (10, 10), (0, 0, 255, 255))
        image.paste((255, 255, 255, 255), (0, 0, 5, 10))

        swatches = quantize(image)

        assert sum(s.population for s in swatches) == 50


class TestSelectSwatches:
    """Tests for select_swatches."""

    def test_empty_palette(self):
        assert select_swatches([]) == {}

    def test_dark_vibrant_derived_from_vibrant(self):
        selected = select_swatches([Swatch(rgb=(255, 0, 0), population=10)])

        assert selected["Vibrant"].rgb == (255, 0, 0)
        assert "DarkVibrant" in selected
        _, _, lightness = selected["DarkVibrant"].hsl
        assert lightness < 0.45

    def test_muted_picks_low_saturation(self):
        grey_blue = Swatch(rgb=(110, 120, 140), population=5)
        selected = select_swatches([Swatch(rgb=(255, 0, 0), population=10), grey_blue])

        assert selected["Muted"] == grey_blue

    def test_swatch_not_reused(self):
        only = Swatch(rgb=(200, 40, 40), population=3)
        selected = select_swatches([only])

        picked = [name for name, swatch in selected.items() if swatch == only]
        assert len(picked) == 1

"""Tests for the image colors endpoint."""

import io
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from apoxer.main import app
from apoxer.settings import get_settings

RealAsyncClient = httpx.AsyncClient


@pytest.fixture
def client() -> TestClient:
    """Create a test client."""
    return TestClient(app)


def png_bytes(color: tuple[int, int, int] = (220, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (40, 40), color).save(buffer, format="PNG")
    return buffer.getvalue()


def image_response(
    status_code: int = 200,
    content_type: str = "image/png",
    content: bytes | None = None,
) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers={"content-type": content_type},
        content=png_bytes() if content is None else content,
    )


class TestImageColorsValidation:
    """URL validation happens before any network access."""

    def test_missing_url(self, client: TestClient) -> None:
        response = client.get("/api/image-colors")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing 'url' query parameter", "colors": []}

    def test_non_http_scheme(self, client: TestClient) -> None:
        with patch("httpx.AsyncClient") as mock_client:
            response = client.get("/api/image-colors", params={"url": "ftp://example.com/a.png"})

        assert response.status_code == 400
        assert response.json()["error"] == "Only http and https URLs are allowed"
        mock_client.assert_not_called()

    def test_malformed_url(self, client: TestClient) -> None:
        response = client.get("/api/image-colors", params={"url": "not a url"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid URL format"


def mock_upstream(handler):
    """Patch httpx.AsyncClient so requests are answered by handler."""

    def make_client(**kwargs):
        return RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    return patch("httpx.AsyncClient", side_effect=make_client)


def small_image_limit(max_bytes: int):
    settings = get_settings().model_copy(update={"image_max_bytes": max_bytes})
    return patch("apoxer.colors.service.get_settings", return_value=settings)


class TestImageColorsFetch:
    """Tests with the upstream image server mocked."""

    def test_success(self, client: TestClient) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return image_response()

        with mock_upstream(handler):
            response = client.get(
                "/api/image-colors", params={"url": "https://img.example/cover.png"}
            )

        assert response.status_code == 200
        colors = response.json()["colors"]
        assert 1 <= len(colors) <= 3
        assert all(c.startswith("#") and len(c) == 7 for c in colors)

        assert str(requests[0].url) == "https://img.example/cover.png"
        assert "Apoxer" in requests[0].headers["User-Agent"]

    def test_upstream_error_status(self, client: TestClient) -> None:
        with mock_upstream(lambda request: image_response(status_code=404, content=b"")):
            response = client.get(
                "/api/image-colors", params={"url": "https://img.example/missing.png"}
            )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch image: 404 Not Found", "colors": []}

    def test_non_image_content_type(self, client: TestClient) -> None:
        with mock_upstream(
            lambda request: image_response(content_type="text/html", content=b"<html></html>")
        ):
            response = client.get("/api/image-colors", params={"url": "https://img.example/"})

        assert response.status_code == 500
        assert response.json()["error"] == "Invalid content type: text/html. Expected an image."

    def test_transport_error(self, client: TestClient) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        with mock_upstream(handler):
            response = client.get("/api/image-colors", params={"url": "https://img.example/a.png"})

        assert response.status_code == 500
        assert response.json()["error"].startswith("Failed to fetch image:")
        assert response.json()["colors"] == []

    def test_undecodable_image(self, client: TestClient) -> None:
        with mock_upstream(lambda request: image_response(content=b"garbage")):
            response = client.get("/api/image-colors", params={"url": "https://img.example/a.png"})

        assert response.status_code == 500
        assert response.json()["colors"] == []

    def test_declared_length_over_limit(self, client: TestClient) -> None:
        with small_image_limit(100), mock_upstream(lambda request: image_response()):
            response = client.get("/api/image-colors", params={"url": "https://img.example/a.png"})

        assert response.status_code == 500
        assert response.json()["error"].startswith("Image too large:")
        assert response.json()["colors"] == []

    def test_streamed_body_over_limit_is_abandoned(self, client: TestClient) -> None:
        sent = []

        async def endless_body():
            for _ in range(1000):
                sent.append(1)
                yield b"\x00" * 64

        def handler(request: httpx.Request) -> httpx.Response:
            # No Content-Length, the size is only known while reading
            return httpx.Response(
                200, headers={"content-type": "image/png"}, content=endless_body()
            )

        with small_image_limit(256), mock_upstream(handler):
            response = client.get("/api/image-colors", params={"url": "https://img.example/a.png"})

        assert response.status_code == 500
        assert response.json() == {"error": "Image too large: more than 256 bytes", "colors": []}
        assert len(sent) < 10

    def test_decompression_bomb(self, client: TestClient) -> None:
        with (
            patch.object(Image, "MAX_IMAGE_PIXELS", 100),
            mock_upstream(lambda request: image_response()),
        ):
            response = client.get("/api/image-colors", params={"url": "https://img.example/a.png"})

        assert response.status_code == 500
        assert response.json()["error"].startswith("Could not decode image")
        assert response.json()["colors"] == []

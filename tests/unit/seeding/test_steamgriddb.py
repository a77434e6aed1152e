"""Tests for the SteamGridDB client and artwork backfill."""

from collections.abc import Callable
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from apoxer.seeding.steamgriddb import SteamGridDBClient, fill_covers, fill_heroes

BASE = "https://sgdb.example/api/v2"


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> SteamGridDBClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SteamGridDBClient("secret", base_url=BASE, client=http)


def ok(data: list) -> httpx.Response:
    return httpx.Response(200, json={"success": True, "data": data})


class TestSteamGridDBClient:
    async def test_find_cover_prefers_best_safe_grid(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.raw_path.endswith(b"/search/autocomplete/Dead%20by%20Daylight"):
                return ok([{"id": 42, "name": "Dead by Daylight"}])
            if request.url.path.endswith("/grids/game/42"):
                return ok([
                    {"url": "https://cdn/nsfw.png", "score": 99, "nsfw": True},
                    {"url": "https://cdn/low.png", "score": 1},
                    {"url": "https://cdn/best.png", "score": 10},
                ])
            return httpx.Response(404)

        async with make_client(handler) as client:
            url = await client.find_cover("Dead by Daylight")

        assert url == "https://cdn/best.png"
        assert seen[0].headers["Authorization"] == "Bearer secret"

    async def test_flagged_grids_fall_back_to_first(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if "/search/" in request.url.path:
                return ok([{"id": 1}])
            return ok([
                {"url": "https://cdn/a.png", "humor": True},
                {"url": "https://cdn/b.png", "nsfw": True},
            ])

        async with make_client(handler) as client:
            assert await client.find_cover("Game") == "https://cdn/a.png"

    async def test_find_hero_picks_widest(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if "/search/" in request.url.path:
                return ok([{"id": 1}])
            return ok([
                {"url": "https://cdn/narrow.png", "width": 1920},
                {"url": "https://cdn/wide.png", "width": 3840},
            ])

        async with make_client(handler) as client:
            assert await client.find_hero("Game") == "https://cdn/wide.png"

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500),
            httpx.Response(200, json={"success": False}),
            httpx.Response(200, json={"success": True, "data": []}),
            httpx.Response(200, content=b"not json"),
        ],
    )
    async def test_failures_return_none(self, response: httpx.Response):
        async with make_client(lambda request: response) as client:
            assert await client.find_cover("Game") is None

    async def test_transport_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with make_client(handler) as client:
            assert await client.search("Game") is None

    async def test_requires_context_manager(self):
        client = SteamGridDBClient("secret")
        with pytest.raises(RuntimeError):
            await client.search("Game")


class TestFillMedia:
    async def test_fill_covers(self):
        games = [
            SimpleNamespace(id="g1", slug="has-cover", title="A", cover_url="x", hero_url=None),
            SimpleNamespace(id="g2", slug="found", title="B", cover_url=None, hero_url=None),
            SimpleNamespace(id="g3", slug="missing", title="C", cover_url=None, hero_url=None),
            SimpleNamespace(id="g4", slug="gone", title="D", cover_url="", hero_url=None),
        ]
        urls = {"B": "https://cdn/b.png", "C": None, "D": "https://cdn/d.png"}
        client = AsyncMock()
        client.find_cover.side_effect = lambda title: urls[title]

        with patch("apoxer.seeding.steamgriddb.GameRepository") as MockRepo:
            repo = MockRepo.return_value
            repo.list_for_media = AsyncMock(return_value=games)
            repo.update_media = AsyncMock(side_effect=lambda game_id, **kw: game_id != "g4")

            result = await fill_covers(MagicMock(), client, batch_size=2)

        assert result.to_dict() == {
            "processed": 4,
            "updated": 1,
            "skipped": 1,
            "notFound": 1,
            "errors": ["Game gone disappeared before update"],
        }
        repo.update_media.assert_any_await("g2", cover_url="https://cdn/b.png")
        client.find_hero.assert_not_called()

    async def test_fill_heroes(self):
        games = [SimpleNamespace(id="g1", slug="a", title="A", cover_url="x", hero_url=None)]
        client = AsyncMock()
        client.find_hero.return_value = "https://cdn/hero.png"

        with patch("apoxer.seeding.steamgriddb.GameRepository") as MockRepo:
            repo = MockRepo.return_value
            repo.list_for_media = AsyncMock(return_value=games)
            repo.update_media = AsyncMock(return_value=True)

            result = await fill_heroes(MagicMock(), client, offset=10, limit=5)

        assert result.updated == 1
        repo.list_for_media.assert_awaited_once_with(offset=10, limit=5)
        repo.update_media.assert_awaited_once_with("g1", hero_url="https://cdn/hero.png")

"""SteamGridDB artwork backfill for game covers and hero banners."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.db.models import Game
from apoxer.db.repositories.games import GameRepository

logger = logging.getLogger(__name__)

BATCH_SIZE = 25


class SteamGridDBClient:
    """Minimal SteamGridDB API v2 client.

    Every lookup returns None on failure (HTTP error, unsuccessful payload,
    no results); failures are logged, never raised.

    Usage:
        async with SteamGridDBClient(api_key) as client:
            url = await client.find_cover("Valorant")
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://www.steamgriddb.com/api/v2",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: SteamGridDB API key (sent as a Bearer token)
            base_url: API root
            timeout: Per-request timeout in seconds
            client: Pre-built HTTP client (owned by the caller)
        """
        self.base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {api_key}"}
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "SteamGridDBClient":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_data(self, path: str) -> list[dict[str, Any]] | None:
        if self._client is None:
            raise RuntimeError("SteamGridDBClient used outside 'async with'")

        try:
            response = await self._client.get(f"{self.base_url}{path}", headers=self._headers)
        except httpx.HTTPError as e:
            logger.warning(f"SteamGridDB request {path} failed: {e}")
            return None

        if response.status_code != 200:
            logger.warning(
                f"SteamGridDB request {path} failed: "
                f"{response.status_code} {response.reason_phrase}"
            )
            return None

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"SteamGridDB request {path} returned invalid JSON: {e}")
            return None

        if not payload.get("success") or not payload.get("data"):
            return None
        return payload["data"]

    async def search(self, title: str) -> dict[str, Any] | None:
        """Get the most relevant SteamGridDB game for a title."""
        results = await self._get_data(f"/search/autocomplete/{quote(title, safe='')}")
        return results[0] if results else None

    async def best_grid(self, sgdb_game_id: int) -> dict[str, Any] | None:
        """Get the highest-scoring cover that is neither NSFW nor humor.

        Falls back to the first grid when every grid is flagged.
        """
        grids = await self._get_data(f"/grids/game/{sgdb_game_id}")
        if not grids:
            return None

        suitable = [g for g in grids if not g.get("nsfw") and not g.get("humor")]
        if not suitable:
            return grids[0]
        return max(suitable, key=lambda g: g.get("score", 0))

    async def widest_hero(self, sgdb_game_id: int) -> dict[str, Any] | None:
        """Get the widest hero banner."""
        heroes = await self._get_data(f"/heroes/game/{sgdb_game_id}")
        if not heroes:
            return None
        return max(heroes, key=lambda h: h.get("width", 0))

    async def find_cover(self, title: str) -> str | None:
        """Find a cover image URL for a game title."""
        game = await self.search(title)
        if game is None:
            return None
        grid = await self.best_grid(game["id"])
        return grid.get("url") if grid else None

    async def find_hero(self, title: str) -> str | None:
        """Find a hero banner URL for a game title."""
        game = await self.search(title)
        if game is None:
            return None
        hero = await self.widest_hero(game["id"])
        return hero.get("url") if hero else None


@dataclass
class MediaFillResult:
    """Outcome of a cover or hero backfill run."""

    processed: int = 0
    updated: int = 0
    skipped: int = 0
    not_found: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "updated": self.updated,
            "skipped": self.skipped,
            "notFound": self.not_found,
            "errors": list(self.errors),
        }


async def _fill_media(
    session: AsyncSession,
    client: SteamGridDBClient,
    kind: str,
    offset: int,
    limit: int,
    batch_size: int,
) -> MediaFillResult:
    repository = GameRepository(session)
    result = MediaFillResult()
    games = await repository.list_for_media(offset=offset, limit=limit)

    def has_media(game: Game) -> bool:
        return bool(game.cover_url if kind == "cover" else game.hero_url)

    lookup = client.find_cover if kind == "cover" else client.find_hero

    for start in range(0, len(games), batch_size):
        batch = games[start : start + batch_size]
        result.processed += len(batch)

        pending = [g for g in batch if not has_media(g)]
        result.skipped += len(batch) - len(pending)

        urls = await asyncio.gather(*(lookup(g.title) for g in pending))
        for game, url in zip(pending, urls, strict=True):
            if url is None:
                result.not_found += 1
                continue
            if kind == "cover":
                updated = await repository.update_media(game.id, cover_url=url)
            else:
                updated = await repository.update_media(game.id, hero_url=url)
            if updated:
                result.updated += 1
            else:
                result.errors.append(f"Game {game.slug} disappeared before update")

        logger.info(
            f"{kind.capitalize()} backfill: {result.processed}/{len(games)} processed, "
            f"{result.updated} updated"
        )

    return result


async def fill_covers(
    session: AsyncSession,
    client: SteamGridDBClient,
    offset: int = 0,
    limit: int = 1000,
    batch_size: int = BATCH_SIZE,
) -> MediaFillResult:
    """Fetch covers for games (ordered by title) that have none. The caller commits."""
    return await _fill_media(session, client, "cover", offset, limit, batch_size)


async def fill_heroes(
    session: AsyncSession,
    client: SteamGridDBClient,
    offset: int = 0,
    limit: int = 1000,
    batch_size: int = BATCH_SIZE,
) -> MediaFillResult:
    """Fetch hero banners for games (ordered by title) that have none. The caller commits."""
    return await _fill_media(session, client, "hero", offset, limit, batch_size)

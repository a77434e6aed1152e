"""One-shot database seeding tasks."""

from apoxer.seeding.catalog import GAMES, SeedGamesResult, seed_games
from apoxer.seeding.events import SeedEventsResult, seed_events
from apoxer.seeding.steamgriddb import (
    MediaFillResult,
    SteamGridDBClient,
    fill_covers,
    fill_heroes,
)

__all__ = [
    "GAMES",
    "MediaFillResult",
    "SeedEventsResult",
    "SeedGamesResult",
    "SteamGridDBClient",
    "fill_covers",
    "fill_heroes",
    "seed_events",
    "seed_games",
]

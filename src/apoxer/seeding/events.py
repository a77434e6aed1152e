"""Sample game versions and LFG events for popular games."""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.db.repositories.events import EventRepository
from apoxer.db.repositories.games import GameRepository

logger = logging.getLogger(__name__)

VERSION_TEMPLATES: dict[str, list[str]] = {
    "valorant": ["Episode 8", "Season 3", "Act 2"],
    "counter-strike-2": ["Update 2.0", "Operation Update"],
    "apex-legends": ["Season 20", "Collection Event"],
    "fortnite": ["Chapter 5", "Season 2"],
    "rocket-league": ["Season 14", "Tournament Update"],
}

EVENT_TEMPLATES: dict[str, list[dict[str, Any]]] = {
    "valorant": [
        {
            "description": "Looking for ranked players, positive K/D only",
            "tags": [
                "#Ranked", "#rankonly", "#Plat1andup", "#winstreak",
                "#EnglishSpeakers", "#TEAMWORK", "Mic required",
            ],
            "players_needed": 1,
            "players_have": 1,
            "platform": "PC",
        },
        {
            "description": "Casual 5v5, all welcome",
            "tags": ["Mic optional", "All content OK", "Swearing OK", "Competitive", "All ages"],
            "players_needed": 6,
            "players_have": 1,
            "platform": "PC",
        },
        {
            "description": "Kid-friendly session",
            "tags": [
                "Kid-friendly content", "No swearing", "No trash-talking",
                "Mic optional", "New players welcome",
            ],
            "players_needed": 1,
            "players_have": 0,
            "platform": "PC",
        },
    ],
    "apex-legends": [
        {
            "description": "Ranked grind, Diamond+ only",
            "tags": ["#Ranked", "Mic required", "Competitive", "#DiamondPlus"],
            "players_needed": 2,
            "players_have": 1,
            "platform": "PC",
        },
        {
            "description": "Casual trios, just for fun",
            "tags": ["Casual", "Mic optional", "All content OK"],
            "players_needed": 2,
            "players_have": 1,
            "platform": None,
        },
    ],
    "counter-strike-2": [
        {
            "description": "Competitive matchmaking, LE+",
            "tags": ["Competitive", "Mic required", "#LEPlus", "#EnglishSpeakers"],
            "players_needed": 4,
            "players_have": 1,
            "platform": "PC",
        },
    ],
}


@dataclass
class SeedEventsResult:
    """Outcome of an events seeding run."""

    versions_created: int = 0
    versions_skipped: int = 0
    events_created: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "versionsCreated": self.versions_created,
            "versionsSkipped": self.versions_skipped,
            "eventsCreated": self.events_created,
            "errors": list(self.errors),
        }


def random_start(now: datetime, rng: random.Random) -> datetime:
    """A start time within the next 24 hours, truncated to the minute."""
    start = now + timedelta(hours=rng.randint(0, 23))
    return start.replace(second=0, microsecond=0)


async def seed_events(
    session: AsyncSession,
    created_by: str | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> SeedEventsResult:
    """Create sample game versions and events for games already in the catalogue.

    Games missing from the database are skipped; versions that already exist
    are counted as skipped, not as errors. The caller commits.

    Args:
        session: Database session
        created_by: User recorded as creator (None when seeding anonymously)
        now: Reference time for event start times
        rng: Random source for start times
    """
    rng = rng or random.Random()
    now = now or datetime.now()
    games = GameRepository(session)
    events = EventRepository(session)
    result = SeedEventsResult()

    for slug, version_names in VERSION_TEMPLATES.items():
        game = await games.get_by_slug(slug)
        if game is None:
            continue

        for name in version_names:
            if await events.get_version(game.id, name) is not None:
                result.versions_skipped += 1
                continue
            try:
                async with session.begin_nested():
                    await events.create_version(game.id, name, created_by)
            except SQLAlchemyError as e:
                logger.warning(f"Failed to create version {name} for {game.title}: {e}")
                result.errors.append(f"Failed to create version {name} for {game.title}: {e}")
                continue
            result.versions_created += 1

    for slug, templates in EVENT_TEMPLATES.items():
        game = await games.get_by_slug(slug)
        if game is None:
            continue

        for template in templates:
            start = random_start(now, rng)
            try:
                async with session.begin_nested():
                    await events.create_event(
                        game_id=game.id,
                        created_by=created_by,
                        start_date=start.date(),
                        start_time=start.time(),
                        players_needed=template["players_needed"],
                        players_have=template["players_have"],
                        description=template["description"],
                        tags=template["tags"],
                        language="English",
                        platform=template["platform"],
                    )
            except SQLAlchemyError as e:
                logger.warning(f"Failed to create event for {game.title}: {e}")
                result.errors.append(f"Failed to create event for {game.title}: {e}")
                continue
            result.events_created += 1

    logger.info(
        f"Seeded events: {result.versions_created} versions, "
        f"{result.events_created} events, {len(result.errors)} errors"
    )
    return result

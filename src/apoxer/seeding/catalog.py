"""Built-in catalogue of popular multiplayer games and their communities."""

import logging
import random
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.db.repositories.games import GameRepository

logger = logging.getLogger(__name__)

IGDB_COVER_BASE = "https://images.igdb.com/igdb/image/upload/t_cover_big"


def _game(
    slug: str,
    title: str,
    description: str,
    cover: str,
    platforms: list[str],
    genres: list[str],
    tags: list[str],
) -> dict[str, Any]:
    return {
        "slug": slug,
        "title": title,
        "description": description,
        "cover_url": f"{IGDB_COVER_BASE}/{cover}.png",
        "platforms": platforms,
        "genres": genres,
        "tags": tags,
    }


ALL_CONSOLES = ["PC", "PlayStation", "Xbox", "Nintendo Switch"]

GAMES: list[dict[str, Any]] = [
    _game(
        "valorant", "Valorant",
        "A 5v5 character-based tactical FPS where precise gunplay meets unique agent abilities.",
        "co49x5", ["PC"], ["FPS", "Tactical"],
        ["Competitive", "Team-based", "Free-to-play"],
    ),
    _game(
        "counter-strike-2", "Counter-Strike 2",
        "The next evolution of the legendary Counter-Strike series with improved graphics "
        "and gameplay.",
        "co6wum", ["PC"], ["FPS", "Tactical"],
        ["Competitive", "Esports", "Team-based"],
    ),
    _game(
        "apex-legends", "Apex Legends",
        "A free-to-play battle royale game featuring unique characters with special abilities.",
        "co1r7h", ALL_CONSOLES, ["Battle Royale", "FPS"],
        ["Free-to-play", "Squad-based", "Fast-paced"],
    ),
    _game(
        "fortnite", "Fortnite",
        "Build, battle, and survive in this popular battle royale game with creative building "
        "mechanics.",
        "co49x6", [*ALL_CONSOLES, "Mobile"], ["Battle Royale", "Action"],
        ["Free-to-play", "Building", "Cross-platform"],
    ),
    _game(
        "overwatch-2", "Overwatch 2",
        "Team-based hero shooter with diverse characters and strategic gameplay.",
        "co5p5a", ALL_CONSOLES, ["FPS", "Hero Shooter"],
        ["Team-based", "Competitive", "Free-to-play"],
    ),
    _game(
        "rocket-league", "Rocket League",
        "Soccer meets driving in this physics-based multiplayer game.",
        "co1r76", ALL_CONSOLES, ["Sports", "Racing"],
        ["Competitive", "Cross-platform", "Free-to-play"],
    ),
    _game(
        "minecraft", "Minecraft",
        "Build, explore, and survive in an infinite blocky world with friends.",
        "co49x7", [*ALL_CONSOLES, "Mobile"], ["Sandbox", "Survival"],
        ["Creative", "Multiplayer", "Cross-platform"],
    ),
    _game(
        "among-us", "Among Us",
        "Work together to complete tasks, but watch out for the impostor among you.",
        "co2r7h", ["PC", "Mobile", "Nintendo Switch"], ["Party", "Social Deduction"],
        ["Casual", "Multiplayer", "Free-to-play"],
    ),
    _game(
        "fall-guys", "Fall Guys",
        "Race through chaotic obstacle courses in this battle royale party game.",
        "co2r7i", [*ALL_CONSOLES, "Mobile"], ["Party", "Battle Royale"],
        ["Casual", "Free-to-play", "Cross-platform"],
    ),
    _game(
        "league-of-legends", "League of Legends",
        "The world's most popular MOBA with strategic 5v5 battles.",
        "co49x8", ["PC"], ["MOBA", "Strategy"],
        ["Competitive", "Free-to-play", "Esports"],
    ),
    _game(
        "dota-2", "Dota 2",
        "Deep strategic MOBA with complex mechanics and high skill ceiling.",
        "co49x9", ["PC"], ["MOBA", "Strategy"],
        ["Competitive", "Free-to-play", "Complex"],
    ),
    _game(
        "rainbow-six-siege", "Tom Clancy's Rainbow Six Siege",
        "Tactical 5v5 FPS with destructible environments and unique operators.",
        "co49xa", ["PC", "PlayStation", "Xbox"], ["FPS", "Tactical"],
        ["Competitive", "Team-based", "Strategic"],
    ),
    _game(
        "destiny-2", "Destiny 2",
        "Action MMO with FPS combat, raids, and cooperative gameplay.",
        "co49xb", ["PC", "PlayStation", "Xbox"], ["FPS", "MMO", "RPG"],
        ["Cooperative", "Looter-shooter", "Free-to-play"],
    ),
    _game(
        "phasmophobia", "Phasmophobia",
        "Cooperative horror game where you investigate paranormal activity with friends.",
        "co2r7j", ["PC", "PlayStation", "Xbox", "VR"], ["Horror", "Cooperative"],
        ["Multiplayer", "Horror", "Cooperative"],
    ),
    _game(
        "sea-of-thieves", "Sea of Thieves",
        "Pirate adventure game where you sail the seas with your crew.",
        "co2r7k", ["PC", "Xbox"], ["Adventure", "Action"],
        ["Cooperative", "Open-world", "Cross-platform"],
    ),
    _game(
        "dead-by-daylight", "Dead by Daylight",
        "Asymmetric horror game where survivors try to escape a killer.",
        "co2r7l", [*ALL_CONSOLES, "Mobile"], ["Horror", "Asymmetric"],
        ["Multiplayer", "Horror", "Competitive"],
    ),
    _game(
        "call-of-duty-warzone", "Call of Duty: Warzone",
        "Free-to-play battle royale set in the Call of Duty universe.",
        "co2r7m", ["PC", "PlayStation", "Xbox"], ["Battle Royale", "FPS"],
        ["Free-to-play", "Competitive", "Cross-platform"],
    ),
    _game(
        "gta-online", "Grand Theft Auto Online",
        "Massive multiplayer experience in the world of Los Santos.",
        "co2r7n", ["PC", "PlayStation", "Xbox"], ["Action", "Open-world"],
        ["Multiplayer", "Open-world", "Cooperative"],
    ),
]

COMMUNITY_TEMPLATES: list[dict[str, str]] = [
    {"name": "Official Community", "category": "General", "language": "English"},
    {"name": "Competitive Players", "category": "Competitive", "language": "English"},
    {"name": "Casual Gaming", "category": "Casual", "language": "English"},
]


@dataclass
class SeedGamesResult:
    """Outcome of a catalogue seeding run."""

    games_inserted: int = 0
    games_updated: int = 0
    communities_inserted: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "gamesInserted": self.games_inserted,
            "gamesUpdated": self.games_updated,
            "communitiesInserted": self.communities_inserted,
            "errors": list(self.errors),
        }


async def seed_games(
    session: AsyncSession,
    games: list[dict[str, Any]] | None = None,
    rng: random.Random | None = None,
) -> SeedGamesResult:
    """Upsert the game catalogue and give new games 1-3 communities.

    Each game is written in its own savepoint, so one failing row is
    recorded in ``errors`` without undoing the others. The caller commits.

    Args:
        session: Database session
        games: Catalogue to seed (defaults to the built-in one)
        rng: Random source for community counts (tests pass a seeded one)
    """
    rng = rng or random.Random()
    repository = GameRepository(session)
    result = SeedGamesResult()

    for entry in games if games is not None else GAMES:
        communities = 0
        try:
            async with session.begin_nested():
                game, created = await repository.upsert_by_slug(**entry)
                if created:
                    for i in range(rng.randint(1, len(COMMUNITY_TEMPLATES))):
                        template = COMMUNITY_TEMPLATES[i % len(COMMUNITY_TEMPLATES)]
                        await repository.add_community(
                            game_id=game.id,
                            name=f"{game.title} - {template['name']}",
                            invite_url=f"https://discord.gg/{game.slug}-{i + 1}",
                            category=template["category"],
                            language=template["language"],
                            online_count=rng.randint(100, 2099),
                        )
                        communities += 1
        except SQLAlchemyError as e:
            logger.warning(f"Failed to seed game {entry.get('title')}: {e}")
            result.errors.append(f"Failed to insert game {entry.get('title')}: {e}")
            continue

        if created:
            result.games_inserted += 1
            result.communities_inserted += communities
        else:
            result.games_updated += 1

    logger.info(
        f"Seeded games: {result.games_inserted} inserted, {result.games_updated} updated, "
        f"{result.communities_inserted} communities, {len(result.errors)} errors"
    )
    return result

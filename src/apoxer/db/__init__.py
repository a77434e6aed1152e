"""Database layer."""

from apoxer.db.models import (
    Base,
    Community,
    Event,
    EventParticipant,
    Game,
    GameVersion,
    Guide,
    Player,
    PlayerFollow,
    PlayerGame,
    PlayerLfgPost,
    PlayGuide,
    UserGame,
)
from apoxer.db.repositories import (
    EventRepository,
    GameRepository,
    PlayerRepository,
    ProfileRepository,
    UserGameRepository,
)
from apoxer.db.session import async_session_factory, get_db_session

__all__ = [
    "Base",
    "Community",
    "Event",
    "EventParticipant",
    "EventRepository",
    "Game",
    "GameRepository",
    "GameVersion",
    "Guide",
    "Player",
    "PlayerFollow",
    "PlayerGame",
    "PlayerLfgPost",
    "PlayGuide",
    "PlayerRepository",
    "ProfileRepository",
    "UserGame",
    "UserGameRepository",
    "async_session_factory",
    "get_db_session",
]

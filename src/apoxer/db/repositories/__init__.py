"""Database repositories."""

from apoxer.db.repositories.events import EventRepository
from apoxer.db.repositories.games import GameRepository
from apoxer.db.repositories.players import PlayerRepository
from apoxer.db.repositories.profiles import ProfileRepository
from apoxer.db.repositories.user_games import UserGameRepository

__all__ = [
    "EventRepository",
    "GameRepository",
    "PlayerRepository",
    "ProfileRepository",
    "UserGameRepository",
]

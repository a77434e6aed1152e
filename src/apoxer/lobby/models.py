"""Lobby data models.

These are plain value objects shared by the reducer, the state holder, the
availability poller and the presentation surfaces. None of them touch the
database directly; rows are converted with the ``from_row`` helpers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class MatchmakingStatus(Enum):
    """Coarse matchmaking progress of a lobby."""

    IDLE = "idle"
    SEARCHING = "searching"
    FOUND = "found"
    CONNECTING = "connecting"
    READY = "ready"
    ERROR = "error"


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, so camelCase and snake_case payloads both work."""
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass(frozen=True)
class LobbyGame:
    """Snapshot of the game a lobby is running for."""

    id: str
    slug: str
    title: str
    description: str | None = None
    cover_url: str | None = None
    hero_url: str | None = None
    platforms: list[str] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a camelCase dictionary (the persisted/browser shape)."""
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "coverUrl": self.cover_url,
            "heroUrl": self.hero_url,
            "platforms": list(self.platforms),
            "genres": list(self.genres),
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LobbyGame":
        """Build a game snapshot from a camelCase or snake_case dictionary.

        Raises:
            ValueError: If data is not a mapping or lacks an id or title
        """
        if not isinstance(data, dict):
            raise ValueError(f"Game must be an object, got {type(data).__name__}")
        if not data.get("id") or not data.get("title"):
            raise ValueError("Game requires 'id' and 'title'")

        return cls(
            id=str(data["id"]),
            slug=data.get("slug") or "",
            title=data["title"],
            description=data.get("description"),
            cover_url=_pick(data, "coverUrl", "cover_url"),
            hero_url=_pick(data, "heroUrl", "hero_url"),
            platforms=list(data.get("platforms") or []),
            genres=list(data.get("genres") or []),
            tags=list(data.get("tags") or []),
        )

    @classmethod
    def from_row(cls, game: Any) -> "LobbyGame":
        """Build a game snapshot from a ``games`` row."""
        return cls(
            id=game.id,
            slug=game.slug,
            title=game.title,
            description=game.description,
            cover_url=game.cover_url,
            hero_url=game.hero_url,
            platforms=list(game.platforms or []),
            genres=list(game.genres or []),
            tags=list(game.tags or []),
        )


@dataclass(frozen=True)
class LobbyState:
    """Lobby state for one client.

    Attributes:
        game: Game the lobby is for, or None
        show_lobby: Whether the lobby is visible
        is_modal_open: Whether the lobby modal surface is open
        status: Matchmaking progress
        error: Error text, only set while status is ERROR
    """

    game: LobbyGame | None = None
    show_lobby: bool = False
    is_modal_open: bool = False
    status: MatchmakingStatus = MatchmakingStatus.IDLE
    error: str | None = None

    @property
    def is_active(self) -> bool:
        """A lobby is active when a game is selected and the lobby is visible."""
        return self.game is not None and self.show_lobby

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for API responses and WebSocket messages."""
        return {
            "game": self.game.to_dict() if self.game else None,
            "showLobby": self.show_lobby,
            "isModalOpen": self.is_modal_open,
            "isActive": self.is_active,
            "matchmakingState": {
                "status": self.status.value,
                "error": self.error,
            },
        }


@dataclass(frozen=True)
class AvailablePlayer:
    """A player row as seen by the availability poller."""

    id: str
    user_id: str
    game_id: str | None
    platform: str | None
    status: str
    updated_at: datetime

    @classmethod
    def from_row(cls, player: Any) -> "AvailablePlayer":
        """Build from a ``players`` row."""
        return cls(
            id=player.id,
            user_id=player.user_id,
            game_id=player.game_id,
            platform=player.platform,
            status=player.status,
            updated_at=player.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a camelCase dictionary."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "gameId": self.game_id,
            "platform": self.platform,
            "status": self.status,
            "updatedAt": self.updated_at.isoformat(),
        }

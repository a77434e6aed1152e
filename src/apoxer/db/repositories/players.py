"""Player repository for presence and profile rows."""

import logging
import random
import re
import secrets
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.db.models import AVAILABLE_STATUSES, PLAYER_STATUSES, Player

logger = logging.getLogger(__name__)

# Online first, then looking, then offline
STATUS_PRIORITY: dict[str, int] = {status: i for i, status in enumerate(PLAYER_STATUSES)}

USERNAME_MIN_LENGTH = 3
USERNAME_ATTEMPTS = 10


def sort_by_presence(players: Iterable[Player]) -> list[Player]:
    """Sort players online > looking > offline, most recently updated first within a status."""
    by_recency = sorted(players, key=lambda p: p.updated_at, reverse=True)
    return sorted(by_recency, key=lambda p: STATUS_PRIORITY.get(p.status, len(STATUS_PRIORITY)))


def username_from_email(email: str | None) -> str:
    """Derive a username candidate from an email address.

    Keeps lowercase alphanumerics of the local part; falls back to a random
    "user" handle when that leaves fewer than 3 characters.
    """
    local = email.split("@")[0] if email else "user"
    username = re.sub(r"[^a-z0-9]", "", local.lower())
    if len(username) < USERNAME_MIN_LENGTH:
        username = f"user{secrets.token_hex(3)}"
    return username


class PlayerRepository:
    """Repository for player presence rows and profiles."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: The database session to use
        """
        self.session = session

    async def list_by_game(self, game_id: str) -> list[Player]:
        """List every player row for a game, online first.

        Args:
            game_id: The game ID

        Returns:
            Players ordered online > looking > offline, then by updated_at desc
        """
        result = await self.session.execute(
            select(Player).where(Player.game_id == game_id).order_by(Player.updated_at.desc())
        )
        return sort_by_presence(result.scalars().all())

    async def list_available(self, game_id: str) -> list[Player]:
        """List players who are online or looking for a game.

        This is the lobby availability query.

        Args:
            game_id: The game ID

        Returns:
            Online players first, then looking, each most recently updated first
        """
        result = await self.session.execute(
            select(Player)
            .where(Player.game_id == game_id)
            .where(Player.status.in_(AVAILABLE_STATUSES))
            .order_by(Player.updated_at.desc())
        )
        return sort_by_presence(result.scalars().all())

    async def list_suggested(self, limit: int = 20) -> list[Player]:
        """List recently active players across all games."""
        result = await self.session.execute(
            select(Player).order_by(Player.updated_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def get_for_user(self, user_id: str) -> Player | None:
        """Get the player row owned by a user."""
        result = await self.session.execute(
            select(Player).where(Player.user_id == user_id).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_status(self, user_id: str) -> str | None:
        """Get a user's presence status, or None if they never set one."""
        player = await self.get_for_user(user_id)
        return player.status if player else None

    async def get_by_username(self, username: str) -> Player | None:
        """Get a player by username."""
        result = await self.session.execute(select(Player).where(Player.username == username))
        return result.scalar_one_or_none()

    async def set_status(
        self,
        user_id: str,
        game_id: str | None,
        platform: str | None,
        status: str,
    ) -> Player:
        """Create or update a user's presence row.

        Args:
            user_id: The user setting their presence
            game_id: Game they are playing or looking for
            platform: Platform they are on
            status: One of "online", "looking", "offline"

        Returns:
            The updated player row

        Raises:
            ValueError: If status is not a known presence status
        """
        if status not in PLAYER_STATUSES:
            raise ValueError(f"Invalid status: {status}")

        player = await self.get_for_user(user_id)
        if player is None:
            player = Player(user_id=user_id, game_id=game_id, platform=platform, status=status)
            self.session.add(player)
            logger.info(f"Created presence for user {user_id}: {status}")
        else:
            player.game_id = game_id
            player.platform = platform
            player.status = status
            # Bump even when nothing else changed
            player.updated_at = datetime.now()
            logger.debug(f"Updated presence for user {user_id}: {status}")

        await self.session.flush()
        return player

    async def ensure_profile(
        self,
        user_id: str,
        email: str | None = None,
        display_name: str | None = None,
    ) -> Player:
        """Return the user's player row, creating a profile if there is none.

        New profiles get a unique username derived from the email and start
        offline.
        """
        existing = await self.get_for_user(user_id)
        if existing is not None:
            return existing

        base = username_from_email(email)
        username = base
        for _ in range(USERNAME_ATTEMPTS):
            if await self.get_by_username(username) is None:
                break
            username = f"{base}{random.randint(0, 999)}"
        else:
            username = f"user{secrets.token_hex(4)}"

        player = Player(
            user_id=user_id,
            username=username,
            display_name=display_name or (email.split("@")[0] if email else "User"),
            status="offline",
        )
        self.session.add(player)
        await self.session.flush()

        logger.info(f"Created player profile {username} for user {user_id}")
        return player

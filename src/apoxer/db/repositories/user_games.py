"""User game library repository."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.db.models import Game, UserGame

logger = logging.getLogger(__name__)


class UserGameRepository:
    """Repository for the games users keep in their library."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: The database session to use
        """
        self.session = session

    async def is_in_library(self, user_id: str, game_id: str) -> bool:
        result = await self.session.execute(
            select(UserGame.id)
            .where(UserGame.user_id == user_id)
            .where(UserGame.game_id == game_id)
        )
        return result.scalar_one_or_none() is not None

    async def list_games(self, user_id: str) -> list[Game]:
        """List the games in a user's library, most recently added first."""
        result = await self.session.execute(
            select(Game)
            .join(UserGame, UserGame.game_id == Game.id)
            .where(UserGame.user_id == user_id)
            .order_by(UserGame.created_at.desc())
        )
        return list(result.scalars().all())

    async def add(self, user_id: str, game_id: str) -> UserGame:
        """Add a game to a user's library.

        Raises:
            sqlalchemy.exc.IntegrityError: If the game is already in the library
                or does not exist
        """
        entry = UserGame(user_id=user_id, game_id=game_id)
        self.session.add(entry)
        await self.session.flush()

        logger.info(f"User {user_id} added game {game_id} to their library")
        return entry

    async def remove(self, user_id: str, game_id: str) -> bool:
        """Remove a game from a user's library.

        Returns:
            True if the game was in the library
        """
        result = await self.session.execute(
            delete(UserGame).where(UserGame.user_id == user_id).where(UserGame.game_id == game_id)
        )
        removed = result.rowcount > 0
        if removed:
            logger.info(f"User {user_id} removed game {game_id} from their library")
        return removed

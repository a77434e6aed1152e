"""Profile repository: player libraries, follows, LFG posts and the social feed."""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.db.models import Player, PlayerFollow, PlayerGame, PlayerLfgPost

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerProfile:
    """A player with the counters shown on their profile page."""

    player: Player
    games_count: int
    followers_count: int
    following_count: int


class ProfileRepository:
    """Repository for everything hanging off a player's profile."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: The database session to use
        """
        self.session = session

    async def get_player(self, username: str) -> Player | None:
        """Get a player by username."""
        result = await self.session.execute(select(Player).where(Player.username == username))
        return result.scalar_one_or_none()

    async def get_profile(self, username: str) -> PlayerProfile | None:
        """Get a player profile with library and follow counts.

        Only follow edges whose other end is an existing player are counted,
        so the counters match the follower/following lists.

        Args:
            username: The player's username

        Returns:
            PlayerProfile or None if no player has this username
        """
        player = await self.get_player(username)
        if player is None:
            return None

        games_count = await self.session.scalar(
            select(func.count(PlayerGame.id)).where(PlayerGame.player_id == player.id)
        )
        followers_count = await self.session.scalar(
            select(func.count())
            .select_from(PlayerFollow)
            .join(Player, Player.id == PlayerFollow.follower_id)
            .where(PlayerFollow.followed_id == player.id)
        )
        following_count = await self.session.scalar(
            select(func.count())
            .select_from(PlayerFollow)
            .join(Player, Player.id == PlayerFollow.followed_id)
            .where(PlayerFollow.follower_id == player.id)
        )

        return PlayerProfile(
            player=player,
            games_count=games_count or 0,
            followers_count=followers_count or 0,
            following_count=following_count or 0,
        )

    async def list_featured_games(self, player_id: str, limit: int = 6) -> list[PlayerGame]:
        """List the games a player chose to feature on their profile."""
        result = await self.session.execute(
            select(PlayerGame)
            .where(PlayerGame.player_id == player_id)
            .where(PlayerGame.is_featured.is_(True))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_player_games(self, player_id: str) -> list[PlayerGame]:
        """List a player's whole library, featured games first."""
        result = await self.session.execute(
            select(PlayerGame)
            .where(PlayerGame.player_id == player_id)
            .order_by(PlayerGame.is_featured.desc(), PlayerGame.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_pinned_lfg_post(self, player_id: str) -> PlayerLfgPost | None:
        """Get the player's pinned LFG post, falling back to their latest one."""
        result = await self.session.execute(
            select(PlayerLfgPost)
            .where(PlayerLfgPost.player_id == player_id)
            .order_by(PlayerLfgPost.is_pinned.desc(), PlayerLfgPost.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_followers(self, username: str) -> list[Player] | None:
        """List players following the given player.

        Returns:
            Followers, most recent follow first, or None if the player does not exist
        """
        player = await self.get_player(username)
        if player is None:
            return None

        result = await self.session.execute(
            select(Player)
            .join(PlayerFollow, PlayerFollow.follower_id == Player.id)
            .where(PlayerFollow.followed_id == player.id)
            .order_by(PlayerFollow.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_following(self, username: str) -> list[Player] | None:
        """List players the given player follows.

        Returns:
            Followed players, most recent follow first, or None if the player does not exist
        """
        player = await self.get_player(username)
        if player is None:
            return None

        result = await self.session.execute(
            select(Player)
            .join(PlayerFollow, PlayerFollow.followed_id == Player.id)
            .where(PlayerFollow.follower_id == player.id)
            .order_by(PlayerFollow.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_social_feed(self, player_id: str, limit: int = 20) -> list[PlayerLfgPost]:
        """Get LFG posts by a player and by the players they follow.

        Args:
            player_id: The player whose feed is being built
            limit: Maximum number of posts to return

        Returns:
            Posts ordered newest first
        """
        followed = select(PlayerFollow.followed_id).where(PlayerFollow.follower_id == player_id)

        result = await self.session.execute(
            select(PlayerLfgPost)
            .where(
                (PlayerLfgPost.player_id == player_id)
                | PlayerLfgPost.player_id.in_(followed)
            )
            .order_by(PlayerLfgPost.created_at.desc())
            .limit(limit)
        )
        posts = list(result.scalars().all())
        logger.debug(f"Social feed for player {player_id}: {len(posts)} posts")
        return posts

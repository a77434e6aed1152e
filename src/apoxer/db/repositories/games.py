"""Game repository for database operations."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.db.models import Community, Game, Guide, PlayGuide

logger = logging.getLogger(__name__)


class GameRepository:
    """Repository for the game directory and its per-game collections."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: The database session to use
        """
        self.session = session

    async def list_games(
        self,
        q: str | None = None,
        genre: str | None = None,
        platform: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Game]:
        """List games with optional search and filters.

        Args:
            q: Case-insensitive substring of the title
            genre: Only games with this genre
            platform: Only games on this platform
            limit: Maximum number of games to return
            offset: Number of games to skip

        Returns:
            Games ordered by title
        """
        query = select(Game)

        if q:
            query = query.where(Game.title.ilike(f"%{q}%"))
        if genre:
            query = query.where(Game.genres.contains([genre]))
        if platform:
            query = query.where(Game.platforms.contains([platform]))

        query = query.order_by(Game.title.asc())

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_by_slug(self, slug: str) -> Game | None:
        """Get a game by slug.

        Args:
            slug: The game slug

        Returns:
            The game or None if not found
        """
        result = await self.session.execute(select(Game).where(Game.slug == slug))
        return result.scalar_one_or_none()

    async def get_by_id(self, game_id: str) -> Game | None:
        """Get a game by ID."""
        result = await self.session.execute(select(Game).where(Game.id == game_id))
        return result.scalar_one_or_none()

    async def list_similar(
        self,
        genres: list[str],
        exclude_game_id: str,
        limit: int = 8,
    ) -> list[Game]:
        """List games sharing at least one genre, newest first.

        With no genres to match, the newest games are returned instead.

        Args:
            genres: Genres to match
            exclude_game_id: Game to leave out (usually the one being viewed)
            limit: Maximum number of games to return
        """
        query = select(Game).where(Game.id != exclude_game_id)
        if genres:
            query = query.where(Game.genres.overlap(genres))

        result = await self.session.execute(
            query.order_by(Game.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def list_communities(self, game_id: str) -> list[Community]:
        """List communities for a game, most active first."""
        result = await self.session.execute(
            select(Community)
            .where(Community.game_id == game_id)
            .order_by(Community.online_count.desc())
        )
        return list(result.scalars().all())

    async def list_guides(self, game_id: str) -> list[Guide]:
        """List guides for a game, newest first."""
        result = await self.session.execute(
            select(Guide).where(Guide.game_id == game_id).order_by(Guide.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_play_guides(self, game_id: str) -> list[PlayGuide]:
        """List play-together guides for a game, most recently updated first."""
        result = await self.session.execute(
            select(PlayGuide)
            .where(PlayGuide.game_id == game_id)
            .order_by(PlayGuide.last_updated.desc())
        )
        return list(result.scalars().all())

    async def upsert_by_slug(
        self,
        slug: str,
        title: str,
        description: str,
        cover_url: str | None,
        platforms: list[str],
        genres: list[str],
        tags: list[str],
        hero_url: str | None = None,
    ) -> tuple[Game, bool]:
        """Insert a game, or update the existing row with the same slug.

        Returns:
            Tuple of (game, created)
        """
        existing = await self.get_by_slug(slug)
        if existing is not None:
            existing.title = title
            existing.description = description
            existing.platforms = platforms
            existing.genres = genres
            existing.tags = tags
            # Keep media fetched by the cover/hero tasks
            existing.cover_url = existing.cover_url or cover_url
            existing.hero_url = existing.hero_url or hero_url
            await self.session.flush()
            logger.debug(f"Updated game {slug}")
            return existing, False

        game = Game(
            slug=slug,
            title=title,
            description=description,
            cover_url=cover_url,
            hero_url=hero_url,
            platforms=platforms,
            genres=genres,
            tags=tags,
        )
        self.session.add(game)
        await self.session.flush()

        logger.info(f"Inserted game {slug}")
        return game, True

    async def add_community(
        self,
        game_id: str,
        name: str,
        invite_url: str,
        category: str,
        language: str,
        online_count: int,
    ) -> Community:
        """Add a community to a game."""
        community = Community(
            game_id=game_id,
            name=name,
            invite_url=invite_url,
            category=category,
            language=language,
            online_count=online_count,
        )
        self.session.add(community)
        await self.session.flush()
        return community

    async def list_for_media(self, offset: int = 0, limit: int = 1000) -> list[Game]:
        """List a range of games ordered by title (cover/hero backfill)."""
        result = await self.session.execute(
            select(Game).order_by(Game.title.asc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def update_media(
        self,
        game_id: str,
        cover_url: str | None = None,
        hero_url: str | None = None,
    ) -> bool:
        """Set a game's cover and/or hero URL.

        Returns:
            True if updated, False if the game does not exist
        """
        game = await self.get_by_id(game_id)
        if game is None:
            return False

        if cover_url is not None:
            game.cover_url = cover_url
        if hero_url is not None:
            game.hero_url = hero_url
        await self.session.flush()
        return True

"""Event repository for LFG events, game versions and participants."""

import logging
from datetime import date, datetime, time

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from apoxer.db.models import Event, EventParticipant, GameVersion

logger = logging.getLogger(__name__)


class EventRepository:
    """Repository for events and the game versions they reference."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: The database session to use
        """
        self.session = session

    async def list_by_game(self, game_id: str) -> list[Event]:
        """List active events for a game, soonest first."""
        result = await self.session.execute(
            select(Event)
            .where(Event.game_id == game_id)
            .where(Event.status == "active")
            .options(selectinload(Event.participants))
            .order_by(Event.start_datetime.asc())
        )
        return list(result.unique().scalars().all())

    async def list_upcoming(self, limit: int = 4, now: datetime | None = None) -> list[Event]:
        """List active events starting from now across all games.

        Args:
            limit: Maximum number of events to return
            now: Reference time (defaults to the current time)
        """
        now = now or datetime.now()
        result = await self.session.execute(
            select(Event)
            .where(Event.status == "active")
            .where(Event.start_datetime >= now)
            .options(selectinload(Event.participants))
            .order_by(Event.start_datetime.asc())
            .limit(limit)
        )
        return list(result.unique().scalars().all())

    async def get_by_id(self, event_id: str) -> Event | None:
        """Get an event by ID."""
        result = await self.session.execute(
            select(Event).where(Event.id == event_id).options(selectinload(Event.participants))
        )
        return result.unique().scalar_one_or_none()

    async def list_versions(self, game_id: str) -> list[GameVersion]:
        """List versions of a game, newest first."""
        result = await self.session.execute(
            select(GameVersion)
            .where(GameVersion.game_id == game_id)
            .order_by(GameVersion.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_version(self, game_id: str, version_name: str) -> GameVersion | None:
        """Get a game version by name."""
        result = await self.session.execute(
            select(GameVersion)
            .where(GameVersion.game_id == game_id)
            .where(GameVersion.version_name == version_name)
        )
        return result.scalar_one_or_none()

    async def create_version(
        self,
        game_id: str,
        version_name: str,
        user_id: str | None,
    ) -> GameVersion:
        """Create a game version.

        Raises:
            sqlalchemy.exc.IntegrityError: If the game already has a version with this name
        """
        version = GameVersion(game_id=game_id, version_name=version_name, created_by=user_id)
        self.session.add(version)
        await self.session.flush()

        logger.info(f"Created version {version_name!r} for game {game_id}")
        return version

    async def create_event(
        self,
        game_id: str,
        created_by: str | None,
        start_date: date,
        start_time: time,
        players_needed: int,
        description: str | None = None,
        tags: list[str] | None = None,
        language: str = "English",
        platform: str | None = None,
        game_version_id: str | None = None,
        players_have: int = 0,
    ) -> Event:
        """Create an active event.

        The start datetime is the combination of start_date and start_time.
        """
        event = Event(
            game_id=game_id,
            game_version_id=game_version_id,
            created_by=created_by,
            description=description,
            tags=tags or [],
            players_needed=players_needed,
            players_have=players_have,
            start_date=start_date,
            start_time=start_time,
            start_datetime=datetime.combine(start_date, start_time),
            language=language,
            platform=platform,
            status="active",
            participants=[],
        )
        self.session.add(event)
        await self.session.flush()

        logger.info(f"Created event {event.id} for game {game_id}")
        return event

    async def join(self, event_id: str, user_id: str) -> EventParticipant:
        """Add a user to an event.

        Raises:
            sqlalchemy.exc.IntegrityError: If the user already joined or the event does not exist
        """
        participant = EventParticipant(event_id=event_id, user_id=user_id)
        self.session.add(participant)
        await self.session.flush()

        logger.info(f"User {user_id} joined event {event_id}")
        return participant

    async def leave(self, event_id: str, user_id: str) -> bool:
        """Remove a user from an event.

        Returns:
            True if the user was a participant
        """
        result = await self.session.execute(
            delete(EventParticipant)
            .where(EventParticipant.event_id == event_id)
            .where(EventParticipant.user_id == user_id)
        )
        removed = result.rowcount > 0
        if removed:
            logger.info(f"User {user_id} left event {event_id}")
        return removed

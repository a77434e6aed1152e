"""Database models for Apoxer."""

import uuid
from datetime import date, datetime, time

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# Presence statuses, in display priority order
PLAYER_STATUSES = ("online", "looking", "offline")
AVAILABLE_STATUSES = ("online", "looking")

EVENT_STATUSES = ("active", "full", "cancelled", "completed")


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now()


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Game(Base):
    """A game in the directory.

    Games are created by the seeding tasks and are read-only at runtime.

    Attributes:
        id: Unique identifier
        slug: URL identifier (e.g. "rocket-league")
        title: Display title
        description: Short description
        cover_url: Portrait cover art URL
        hero_url: Wide banner art URL
        platforms: Platforms the game runs on
        genres: Genre labels
        tags: Free-form tags
        created_at: When the game was added
    """

    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    cover_url: Mapped[str | None] = mapped_column(String, nullable=True)
    hero_url: Mapped[str | None] = mapped_column(String, nullable=True)
    platforms: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    genres: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_now, nullable=False, index=True
    )


class Player(Base):
    """A player's presence row and public profile.

    The presence half (game_id, platform, status, updated_at) is upserted by
    the player and read by the lobby availability poller. Nothing expires a
    row: "offline" has to be set explicitly.

    Attributes:
        id: Unique identifier
        user_id: Hosted auth user identifier
        game_id: Game the player is currently playing or looking for
        platform: Platform the player is on
        status: "online", "looking" or "offline"
        username: Unique public handle
        display_name: Display name
        updated_at: Last presence change
    """

    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    game_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="SET NULL"), nullable=True
    )
    platform: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="offline")
    username: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String, nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    website: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_now, onupdate=_now, nullable=False
    )

    game: Mapped["Game | None"] = relationship("Game", lazy="joined")

    # Availability query: WHERE game_id = ? AND status IN (...) ORDER BY updated_at DESC
    __table_args__ = (Index("ix_players_game_status_updated", "game_id", "status", "updated_at"),)


class Community(Base):
    """A Discord-style community for a game."""

    __tablename__ = "communities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    invite_url: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="General")
    language: Mapped[str] = mapped_column(String(50), nullable=False, default="English")
    online_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    member_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    region: Mapped[str | None] = mapped_column(String(50), nullable=True)
    voice_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)


class Guide(Base):
    """A free-form guide for a game."""

    __tablename__ = "guides"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)


class GameVersion(Base):
    """A named version of a game (e.g. "Season 3")."""

    __tablename__ = "game_versions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version_name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_now, onupdate=_now, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("game_id", "version_name", name="uq_game_versions_game_name"),
    )


class PlayGuide(Base):
    """Cross-platform "play together" instructions for a game.

    Attributes:
        from_platform: Platform of the inviting player
        to_platform: Platform of the invited player
        steps: Markdown list of steps
        game_version_id: Version the guide applies to (optional)
    """

    __tablename__ = "play_guides"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    from_platform: Mapped[str] = mapped_column(String(50), nullable=False)
    to_platform: Mapped[str] = mapped_column(String(50), nullable=False)
    steps: Mapped[str] = mapped_column(Text, nullable=False, default="")
    last_updated: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)
    game_version_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("game_versions.id", ondelete="SET NULL"), nullable=True
    )
    platform: Mapped[str | None] = mapped_column(String(50), nullable=True)

    game_version: Mapped["GameVersion | None"] = relationship("GameVersion", lazy="joined")


class Event(Base):
    """A "looking for group" event.

    Attributes:
        players_needed: Open seats the creator wants to fill
        players_have: Players already committed
        start_datetime: start_date + start_time combined
        status: "active", "full", "cancelled" or "completed"
    """

    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    game_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )
    game_version_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("game_versions.id", ondelete="SET NULL"), nullable=True
    )
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    players_needed: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    players_have: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    start_datetime: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    language: Mapped[str] = mapped_column(String(50), nullable=False, default="English")
    platform: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_now, onupdate=_now, nullable=False
    )

    game: Mapped["Game"] = relationship("Game", lazy="joined")
    game_version: Mapped["GameVersion | None"] = relationship("GameVersion", lazy="joined")
    participants: Mapped[list["EventParticipant"]] = relationship(
        "EventParticipant", back_populates="event", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_events_status_start", "status", "start_datetime"),)


class EventParticipant(Base):
    """A user who joined an event."""

    __tablename__ = "event_participants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)

    event: Mapped["Event"] = relationship("Event", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),
    )


class PlayerGame(Base):
    """A game in a player's library."""

    __tablename__ = "player_games"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    player_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    game_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False
    )
    platform: Mapped[str | None] = mapped_column(String(50), nullable=True)
    skill_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)

    game: Mapped["Game"] = relationship("Game", lazy="joined")

    __table_args__ = (UniqueConstraint("player_id", "game_id", name="uq_player_games_player_game"),)


class PlayerFollow(Base):
    """A follow edge between two players."""

    __tablename__ = "player_follows"

    follower_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id", ondelete="CASCADE"), primary_key=True
    )
    followed_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)


class PlayerLfgPost(Base):
    """A "looking for group" post on a player's profile and in the social feed."""

    __tablename__ = "player_lfg_posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    player_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    game_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    platform: Mapped[str | None] = mapped_column(String(50), nullable=True)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    max_players: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_players: Mapped[int | None] = mapped_column(Integer, nullable=True)
    voice_required: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    external_link: Mapped[str | None] = mapped_column(String, nullable=True)
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_now, nullable=False, index=True
    )

    player: Mapped["Player"] = relationship("Player", lazy="joined")
    game: Mapped["Game"] = relationship("Game", lazy="joined")


class UserGame(Base):
    """A game a signed-in user added to their library.

    Keyed by the hosted auth user id, so it works before a profile exists.
    """

    __tablename__ = "user_games"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    game_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)

    game: Mapped["Game"] = relationship("Game", lazy="joined")

    __table_args__ = (UniqueConstraint("user_id", "game_id", name="uq_user_games_user_game"),)

"""Player profile and social feed API endpoints."""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.api.games import GameResponse, serialize_game
from apoxer.db.models import Player, PlayerGame, PlayerLfgPost
from apoxer.db.repositories.profiles import ProfileRepository
from apoxer.db.session import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["profiles"])


class PlayerSummary(BaseModel):
    """The public card of a player."""

    id: str
    username: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    status: str

    model_config = {"populate_by_name": True}


class PlayerGameResponse(BaseModel):
    """A game in a player's library."""

    id: str
    game: GameResponse
    platform: str | None = None
    skill_level: str | None = Field(default=None, alias="skillLevel")
    is_featured: bool = Field(alias="isFeatured")

    model_config = {"populate_by_name": True}


class LfgPostResponse(BaseModel):
    """A looking-for-group post."""

    id: str
    player: PlayerSummary
    game: GameResponse
    title: str
    description: str | None = None
    platform: str | None = None
    scheduled_at: datetime | None = Field(default=None, alias="scheduledAt")
    max_players: int | None = Field(default=None, alias="maxPlayers")
    current_players: int | None = Field(default=None, alias="currentPlayers")
    voice_required: bool | None = Field(default=None, alias="voiceRequired")
    external_link: str | None = Field(default=None, alias="externalLink")
    is_pinned: bool = Field(alias="isPinned")
    created_at: datetime = Field(alias="createdAt")

    model_config = {"populate_by_name": True}


class ProfileResponse(BaseModel):
    """A full profile page."""

    id: str
    username: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")
    bio: str | None = None
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    timezone: str | None = None
    location: str | None = None
    website: str | None = None
    status: str
    games_count: int = Field(alias="gamesCount")
    followers_count: int = Field(alias="followersCount")
    following_count: int = Field(alias="followingCount")
    featured_games: list[PlayerGameResponse] = Field(alias="featuredGames")
    games: list[PlayerGameResponse]
    pinned_post: LfgPostResponse | None = Field(default=None, alias="pinnedPost")

    model_config = {"populate_by_name": True}


def serialize_summary(player: Player) -> PlayerSummary:
    return PlayerSummary(
        id=player.id,
        username=player.username,
        display_name=player.display_name,
        avatar_url=player.avatar_url,
        status=player.status,
    )


def serialize_player_game(entry: PlayerGame) -> PlayerGameResponse:
    return PlayerGameResponse(
        id=entry.id,
        game=serialize_game(entry.game),
        platform=entry.platform,
        skill_level=entry.skill_level,
        is_featured=entry.is_featured,
    )


def serialize_post(post: PlayerLfgPost) -> LfgPostResponse:
    return LfgPostResponse(
        id=post.id,
        player=serialize_summary(post.player),
        game=serialize_game(post.game),
        title=post.title,
        description=post.description,
        platform=post.platform,
        scheduled_at=post.scheduled_at,
        max_players=post.max_players,
        current_players=post.current_players,
        voice_required=post.voice_required,
        external_link=post.external_link,
        is_pinned=post.is_pinned,
        created_at=post.created_at,
    )


@router.get("/{username}", response_model=ProfileResponse)
async def get_profile(
    username: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ProfileResponse:
    """Get a player's profile page.

    Raises:
        HTTPException: 404 if no player has this username
    """
    repository = ProfileRepository(db)
    profile = await repository.get_profile(username)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")

    player = profile.player
    featured = await repository.list_featured_games(player.id)
    games = await repository.list_player_games(player.id)
    pinned = await repository.get_pinned_lfg_post(player.id)

    return ProfileResponse(
        id=player.id,
        username=player.username,
        display_name=player.display_name,
        bio=player.bio,
        avatar_url=player.avatar_url,
        timezone=player.timezone,
        location=player.location,
        website=player.website,
        status=player.status,
        games_count=profile.games_count,
        followers_count=profile.followers_count,
        following_count=profile.following_count,
        featured_games=[serialize_player_game(g) for g in featured],
        games=[serialize_player_game(g) for g in games],
        pinned_post=serialize_post(pinned) if pinned else None,
    )


@router.get("/{username}/followers", response_model=list[PlayerSummary])
async def list_followers(
    username: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> list[PlayerSummary]:
    """List a player's followers."""
    followers = await ProfileRepository(db).list_followers(username)
    if followers is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return [serialize_summary(p) for p in followers]


@router.get("/{username}/following", response_model=list[PlayerSummary])
async def list_following(
    username: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> list[PlayerSummary]:
    """List players a player follows."""
    following = await ProfileRepository(db).list_following(username)
    if following is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return [serialize_summary(p) for p in following]


@router.get("/{username}/feed", response_model=list[LfgPostResponse])
async def get_feed(
    username: str,
    limit: int = Query(20, ge=1, le=100),
    db: Annotated[AsyncSession, Depends(get_db_session)] = ...,
) -> list[LfgPostResponse]:
    """Get LFG posts by a player and the players they follow, newest first."""
    repository = ProfileRepository(db)
    player = await repository.get_player(username)
    if player is None:
        raise HTTPException(status_code=404, detail="Profile not found")

    posts = await repository.get_social_feed(player.id, limit=limit)
    return [serialize_post(p) for p in posts]

"""Game directory API endpoints."""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.db.models import Community, Game, Guide, PlayGuide
from apoxer.db.repositories.games import GameRepository
from apoxer.db.session import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games", tags=["games"])


class GameResponse(BaseModel):
    """A game in the directory."""

    id: str
    slug: str
    title: str
    description: str
    cover_url: str | None = Field(default=None, alias="coverUrl")
    hero_url: str | None = Field(default=None, alias="heroUrl")
    platforms: list[str]
    genres: list[str]
    tags: list[str]
    created_at: datetime | None = Field(default=None, alias="createdAt")

    model_config = {"populate_by_name": True}


class CommunityResponse(BaseModel):
    """A Discord community for a game."""

    id: str
    name: str
    invite_url: str = Field(alias="inviteUrl")
    category: str
    language: str
    online_count: int = Field(alias="onlineCount")
    description: str | None = None
    tags: list[str]
    member_count: int | None = Field(default=None, alias="memberCount")
    region: str | None = None
    voice_required: bool = Field(alias="voiceRequired")

    model_config = {"populate_by_name": True}


class GuideResponse(BaseModel):
    """A player-written guide."""

    id: str
    title: str
    content: str
    created_by: str | None = Field(default=None, alias="createdBy")
    created_at: datetime = Field(alias="createdAt")

    model_config = {"populate_by_name": True}


class PlayGuideResponse(BaseModel):
    """A cross-platform play-together guide."""

    id: str
    title: str
    summary: str
    from_platform: str = Field(alias="fromPlatform")
    to_platform: str = Field(alias="toPlatform")
    steps: str
    last_updated: datetime = Field(alias="lastUpdated")
    platform: str | None = None
    version_name: str | None = Field(default=None, alias="versionName")

    model_config = {"populate_by_name": True}


class GameDetailResponse(BaseModel):
    """A game page: the game and everything shown next to it."""

    game: GameResponse
    communities: list[CommunityResponse]
    guides: list[GuideResponse]
    play_guides: list[PlayGuideResponse] = Field(alias="playGuides")
    similar_games: list[GameResponse] = Field(alias="similarGames")

    model_config = {"populate_by_name": True}


def serialize_game(game: Game) -> GameResponse:
    """Convert a games row to its API shape."""
    return GameResponse(
        id=game.id,
        slug=game.slug,
        title=game.title,
        description=game.description,
        cover_url=game.cover_url,
        hero_url=game.hero_url,
        platforms=list(game.platforms or []),
        genres=list(game.genres or []),
        tags=list(game.tags or []),
        created_at=game.created_at,
    )


def serialize_community(community: Community) -> CommunityResponse:
    return CommunityResponse(
        id=community.id,
        name=community.name,
        invite_url=community.invite_url,
        category=community.category,
        language=community.language,
        online_count=community.online_count,
        description=community.description,
        tags=list(community.tags or []),
        member_count=community.member_count,
        region=community.region,
        voice_required=community.voice_required,
    )


def serialize_guide(guide: Guide) -> GuideResponse:
    return GuideResponse(
        id=guide.id,
        title=guide.title,
        content=guide.content,
        created_by=guide.created_by,
        created_at=guide.created_at,
    )


def serialize_play_guide(guide: PlayGuide) -> PlayGuideResponse:
    return PlayGuideResponse(
        id=guide.id,
        title=guide.title,
        summary=guide.summary,
        from_platform=guide.from_platform,
        to_platform=guide.to_platform,
        steps=guide.steps,
        last_updated=guide.last_updated,
        platform=guide.platform,
        version_name=guide.game_version.version_name if guide.game_version else None,
    )


@router.get("", response_model=list[GameResponse])
async def list_games(
    q: str | None = None,
    genre: str | None = None,
    platform: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=500),
    offset: int | None = Query(default=None, ge=0),
    db: Annotated[AsyncSession, Depends(get_db_session)] = ...,
) -> list[GameResponse] | JSONResponse:
    """List games, optionally searching titles and filtering by genre/platform.

    Args:
        q: Case-insensitive title search
        genre: Only games with this genre
        platform: Only games on this platform
        limit: Max results
        offset: Pagination offset
        db: Database session
    """
    repository = GameRepository(db)
    try:
        games = await repository.list_games(
            q=q, genre=genre, platform=platform, limit=limit, offset=offset
        )
    except SQLAlchemyError as e:
        logger.error(f"Error fetching games: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch games"})

    return [serialize_game(game) for game in games]


@router.get("/{slug}", response_model=GameDetailResponse)
async def get_game(
    slug: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> GameDetailResponse:
    """Get a game page by slug.

    Raises:
        HTTPException: 404 if no game has this slug
    """
    repository = GameRepository(db)
    game = await repository.get_by_slug(slug)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")

    communities = await repository.list_communities(game.id)
    guides = await repository.list_guides(game.id)
    play_guides = await repository.list_play_guides(game.id)
    similar = await repository.list_similar(list(game.genres or []), exclude_game_id=game.id)

    return GameDetailResponse(
        game=serialize_game(game),
        communities=[serialize_community(c) for c in communities],
        guides=[serialize_guide(g) for g in guides],
        play_guides=[serialize_play_guide(g) for g in play_guides],
        similar_games=[serialize_game(g) for g in similar],
    )

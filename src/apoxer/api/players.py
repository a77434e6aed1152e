"""Player presence API endpoints."""

import logging
from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.db.models import Player
from apoxer.db.repositories.players import PlayerRepository
from apoxer.db.session import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["players"])


class PlayerResponse(BaseModel):
    """A player presence row."""

    id: str
    user_id: str = Field(alias="userId")
    game_id: str | None = Field(default=None, alias="gameId")
    platform: str | None = None
    status: str
    username: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = {"populate_by_name": True}


class UpdateStatusRequest(BaseModel):
    """Request body for setting presence."""

    game_id: str | None = Field(default=None, alias="gameId")
    platform: str | None = None
    status: Literal["online", "looking", "offline"]

    model_config = {"populate_by_name": True}


class StatusResponse(BaseModel):
    """A user's current presence status."""

    user_id: str = Field(alias="userId")
    status: str | None

    model_config = {"populate_by_name": True}


def serialize_player(player: Player) -> PlayerResponse:
    """Convert a players row to its API shape."""
    return PlayerResponse(
        id=player.id,
        user_id=player.user_id,
        game_id=player.game_id,
        platform=player.platform,
        status=player.status,
        username=player.username,
        display_name=player.display_name,
        avatar_url=player.avatar_url,
        updated_at=player.updated_at,
    )


@router.get("/games/{game_id}/players", response_model=list[PlayerResponse])
async def list_game_players(
    game_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> list[PlayerResponse]:
    """List every player of a game, online first."""
    players = await PlayerRepository(db).list_by_game(game_id)
    return [serialize_player(p) for p in players]


@router.get("/games/{game_id}/players/available", response_model=list[PlayerResponse])
async def list_available_players(
    game_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> list[PlayerResponse]:
    """List players of a game who are online or looking for a group."""
    players = await PlayerRepository(db).list_available(game_id)
    return [serialize_player(p) for p in players]


@router.get("/players/suggested", response_model=list[PlayerResponse])
async def list_suggested_players(
    limit: int = Query(20, ge=1, le=100),
    db: Annotated[AsyncSession, Depends(get_db_session)] = ...,
) -> list[PlayerResponse]:
    """List recently active players across all games."""
    players = await PlayerRepository(db).list_suggested(limit=limit)
    return [serialize_player(p) for p in players]


@router.get("/players/{user_id}/status", response_model=StatusResponse)
async def get_player_status(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> StatusResponse:
    """Get a user's presence status (null if never set)."""
    status = await PlayerRepository(db).get_status(user_id)
    return StatusResponse(user_id=user_id, status=status)


@router.put("/players/{user_id}/status", response_model=PlayerResponse)
async def update_player_status(
    user_id: str,
    request: UpdateStatusRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> PlayerResponse:
    """Set a user's presence for a game.

    Raises:
        HTTPException: 400 if the status is not a presence status
    """
    repository = PlayerRepository(db)
    try:
        player = await repository.set_status(
            user_id=user_id,
            game_id=request.game_id,
            platform=request.platform,
            status=request.status,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return serialize_player(player)

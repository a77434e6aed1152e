"""User game library API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.api.games import GameResponse, serialize_game
from apoxer.db.repositories.games import GameRepository
from apoxer.db.repositories.user_games import UserGameRepository
from apoxer.db.session import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["user-games"])


class AddUserGameRequest(BaseModel):
    """Request body for adding a game to a library."""

    game_id: str = Field(alias="gameId")

    model_config = {"populate_by_name": True}


class LibraryStatusResponse(BaseModel):
    """Whether a game is in a user's library."""

    user_id: str = Field(alias="userId")
    game_id: str = Field(alias="gameId")
    in_library: bool = Field(alias="inLibrary")

    model_config = {"populate_by_name": True}


@router.get("/{user_id}/games", response_model=list[GameResponse])
async def list_user_games(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> list[GameResponse]:
    """List the games in a user's library, most recently added first."""
    games = await UserGameRepository(db).list_games(user_id)
    return [serialize_game(g) for g in games]


@router.get("/{user_id}/games/{game_id}", response_model=LibraryStatusResponse)
async def get_library_status(
    user_id: str,
    game_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> LibraryStatusResponse:
    """Check whether a game is in a user's library."""
    in_library = await UserGameRepository(db).is_in_library(user_id, game_id)
    return LibraryStatusResponse(user_id=user_id, game_id=game_id, in_library=in_library)


@router.post("/{user_id}/games", response_model=LibraryStatusResponse, status_code=201)
async def add_user_game(
    user_id: str,
    request: AddUserGameRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> LibraryStatusResponse:
    """Add a game to a user's library.

    Raises:
        HTTPException: 404 if the game does not exist, 409 if already in the library
    """
    if await GameRepository(db).get_by_id(request.game_id) is None:
        raise HTTPException(status_code=404, detail="Game not found")

    repository = UserGameRepository(db)
    if await repository.is_in_library(user_id, request.game_id):
        raise HTTPException(status_code=409, detail="Game is already in the library")

    await repository.add(user_id, request.game_id)
    return LibraryStatusResponse(user_id=user_id, game_id=request.game_id, in_library=True)


@router.delete("/{user_id}/games/{game_id}", status_code=204)
async def remove_user_game(
    user_id: str,
    game_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> Response:
    """Remove a game from a user's library.

    Raises:
        HTTPException: 404 if the game is not in the library
    """
    removed = await UserGameRepository(db).remove(user_id, game_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Game is not in the library")
    return Response(status_code=204)

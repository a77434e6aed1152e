"""Lobby session API endpoints.

A lobby session is one client's matchmaking lobby. The browser creates a
session (or re-opens a stored session id after a reload), then drives it
through these endpoints or the lobby WebSocket.
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.db.repositories.games import GameRepository
from apoxer.db.session import get_db_session
from apoxer.lobby.models import LobbyGame, MatchmakingStatus
from apoxer.lobby.session import LobbySession, get_lobby_session_manager
from apoxer.lobby.teams import Team, TeamError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lobby/sessions", tags=["lobby"])


class LobbyGameModel(BaseModel):
    """Game snapshot held by a lobby."""

    id: str
    slug: str = ""
    title: str
    description: str | None = None
    cover_url: str | None = Field(default=None, alias="coverUrl")
    hero_url: str | None = Field(default=None, alias="heroUrl")
    platforms: list[str] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class MatchmakingStateModel(BaseModel):
    """Matchmaking status and error text."""

    status: str
    error: str | None = None


class LobbyStateModel(BaseModel):
    """A lobby's state."""

    game: LobbyGameModel | None = None
    show_lobby: bool = Field(alias="showLobby")
    is_modal_open: bool = Field(alias="isModalOpen")
    is_active: bool = Field(alias="isActive")
    matchmaking_state: MatchmakingStateModel = Field(alias="matchmakingState")

    model_config = {"populate_by_name": True}


class AvailablePlayerModel(BaseModel):
    """A player who is online or looking."""

    id: str
    user_id: str = Field(alias="userId")
    game_id: str | None = Field(default=None, alias="gameId")
    platform: str | None = None
    status: str
    updated_at: datetime = Field(alias="updatedAt")

    model_config = {"populate_by_name": True}


class PlayersModel(BaseModel):
    """The latest availability poll result."""

    game_id: str | None = Field(default=None, alias="gameId")
    count: int
    players: list[AvailablePlayerModel]
    last_fetched_at: datetime | None = Field(default=None, alias="lastFetchedAt")

    model_config = {"populate_by_name": True}


class CountdownModel(BaseModel):
    """The lobby freshness countdown."""

    remaining: int
    display: str
    progress: float


class LobbySessionResponse(BaseModel):
    """A lobby session with everything a surface renders."""

    id: str
    state: LobbyStateModel
    players: PlayersModel
    countdown: CountdownModel


class CreateSessionRequest(BaseModel):
    """Request body for creating (or re-opening) a session."""

    session_id: str | None = Field(default=None, alias="sessionId")

    model_config = {"populate_by_name": True}


class SetGameRequest(BaseModel):
    """Request body for selecting a game: by slug, by snapshot, or neither to clear."""

    slug: str | None = None
    game: LobbyGameModel | None = None


class SetVisibilityRequest(BaseModel):
    """Request body for showing or hiding the lobby."""

    visible: bool


class SetMatchmakingRequest(BaseModel):
    """Request body for overriding the matchmaking status."""

    status: MatchmakingStatus
    error: str | None = None


class TeamPlayerRequest(BaseModel):
    """A player creating, joining or leaving a team."""

    user_id: str = Field(alias="userId")
    username: str = ""
    platform: str | None = None

    model_config = {"populate_by_name": True}


class TeamMemberModel(BaseModel):
    """A team member."""

    id: str
    user_id: str = Field(alias="userId")
    username: str
    platform: str | None = None
    is_leader: bool = Field(alias="isLeader")
    is_ready: bool = Field(alias="isReady")

    model_config = {"populate_by_name": True}


class TeamModel(BaseModel):
    """A team."""

    id: str
    name: str
    members: list[TeamMemberModel]
    max_members: int = Field(alias="maxMembers")

    model_config = {"populate_by_name": True}


class TeamsResponse(BaseModel):
    """Every team of a lobby."""

    teams: list[TeamModel]
    all_ready: bool = Field(alias="allReady")

    model_config = {"populate_by_name": True}


def serialize_session(session: LobbySession) -> LobbySessionResponse:
    """Build the API shape of a session from its event snapshot."""
    snapshot = session.snapshot()
    return LobbySessionResponse(
        id=session.id,
        state=LobbyStateModel.model_validate(snapshot["lobby_state"]["state"]),
        players=PlayersModel.model_validate(snapshot["players"]),
        countdown=CountdownModel.model_validate(snapshot["countdown"]),
    )


def serialize_team(team: Team) -> TeamModel:
    return TeamModel(
        id=team.id,
        name=team.name,
        members=[
            TeamMemberModel(
                id=m.id,
                user_id=m.user_id,
                username=m.username,
                platform=m.platform,
                is_leader=m.is_leader,
                is_ready=m.is_ready,
            )
            for m in team.members
        ],
        max_members=team.max_members,
    )


def serialize_teams(session: LobbySession) -> TeamsResponse:
    return TeamsResponse(
        teams=[serialize_team(t) for t in session.teams.teams],
        all_ready=session.teams.all_ready(),
    )


_NOT_FOUND_CODES = frozenset({"team_not_found", "member_not_found", "not_in_team"})


def _team_http_error(error: TeamError) -> HTTPException:
    status_code = 404 if error.code in _NOT_FOUND_CODES else 409
    return HTTPException(status_code=status_code, detail=error.message)


def _get_session(session_id: str) -> LobbySession:
    session = get_lobby_session_manager().get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Lobby session not found")
    return session


@router.post("", response_model=LobbySessionResponse, status_code=201)
async def create_session(request: CreateSessionRequest | None = None) -> LobbySessionResponse:
    """Create a lobby session.

    Passing a previously issued ``sessionId`` re-opens that session and
    restores its persisted lobby.
    """
    session_id = request.session_id if request else None
    try:
        session = await get_lobby_session_manager().create_session(session_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return serialize_session(session)


@router.get("/{session_id}", response_model=LobbySessionResponse)
async def get_session(session_id: str) -> LobbySessionResponse:
    """Get a lobby session."""
    return serialize_session(_get_session(session_id))


@router.delete("/{session_id}", status_code=204)
async def close_session(session_id: str) -> Response:
    """Close a lobby session. Its persisted lobby is kept for re-opening."""
    closed = await get_lobby_session_manager().close_session(session_id)
    if not closed:
        raise HTTPException(status_code=404, detail="Lobby session not found")
    return Response(status_code=204)


@router.put("/{session_id}/game", response_model=LobbySessionResponse)
async def set_game(
    session_id: str,
    request: SetGameRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> LobbySessionResponse:
    """Select the lobby's game (status becomes searching), or clear it.

    Raises:
        HTTPException: 404 if the session or the game slug does not exist
            or 400 if the game snapshot lacks an id or title
    """
    session = _get_session(session_id)

    game: LobbyGame | None = None
    if request.slug:
        row = await GameRepository(db).get_by_slug(request.slug)
        if row is None:
            raise HTTPException(status_code=404, detail="Game not found")
        game = LobbyGame.from_row(row)
    elif request.game is not None:
        try:
            game = LobbyGame.from_dict(request.game.model_dump(by_alias=True))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    await session.set_game(game)
    return serialize_session(session)


@router.put("/{session_id}/visibility", response_model=LobbySessionResponse)
async def set_visibility(session_id: str, request: SetVisibilityRequest) -> LobbySessionResponse:
    """Show or hide the lobby. Hiding clears the game and resets status to idle."""
    session = _get_session(session_id)
    await session.set_show_lobby(request.visible)
    return serialize_session(session)


@router.post("/{session_id}/modal/open", response_model=LobbySessionResponse)
async def open_modal(session_id: str) -> LobbySessionResponse:
    """Open the lobby modal."""
    session = _get_session(session_id)
    await session.open_lobby_modal()
    return serialize_session(session)


@router.post("/{session_id}/modal/close", response_model=LobbySessionResponse)
async def close_modal(session_id: str) -> LobbySessionResponse:
    """Close the lobby modal."""
    session = _get_session(session_id)
    await session.close_lobby_modal()
    return serialize_session(session)


@router.put("/{session_id}/matchmaking", response_model=LobbySessionResponse)
async def set_matchmaking_state(
    session_id: str,
    request: SetMatchmakingRequest,
) -> LobbySessionResponse:
    """Override the matchmaking status."""
    session = _get_session(session_id)
    await session.set_matchmaking_state(request.status, request.error)
    return serialize_session(session)


@router.get("/{session_id}/players", response_model=PlayersModel)
async def get_players(session_id: str) -> PlayersModel:
    """Get the latest availability poll result (possibly stale)."""
    session = _get_session(session_id)
    return PlayersModel.model_validate(session.snapshot()["players"])


@router.get("/{session_id}/teams", response_model=TeamsResponse)
async def list_teams(session_id: str) -> TeamsResponse:
    """List the lobby's teams."""
    return serialize_teams(_get_session(session_id))


@router.post("/{session_id}/teams", response_model=TeamsResponse, status_code=201)
async def create_team(session_id: str, request: TeamPlayerRequest) -> TeamsResponse:
    """Create a team led by the requesting player."""
    session = _get_session(session_id)
    try:
        session.teams.create_team(request.user_id, request.username, request.platform)
    except TeamError as e:
        raise _team_http_error(e) from e
    return serialize_teams(session)


@router.post("/{session_id}/teams/leave", response_model=TeamsResponse)
async def leave_team(session_id: str, request: TeamPlayerRequest) -> TeamsResponse:
    """Leave the player's team; empty teams are disbanded."""
    session = _get_session(session_id)
    try:
        session.teams.leave(request.user_id)
    except TeamError as e:
        raise _team_http_error(e) from e
    return serialize_teams(session)


@router.post("/{session_id}/teams/{team_id}/members", response_model=TeamsResponse)
async def invite_member(
    session_id: str,
    team_id: str,
    request: TeamPlayerRequest,
) -> TeamsResponse:
    """Add a player to a team."""
    session = _get_session(session_id)
    try:
        session.teams.invite(team_id, request.user_id, request.username, request.platform)
    except TeamError as e:
        raise _team_http_error(e) from e
    return serialize_teams(session)


@router.delete("/{session_id}/teams/{team_id}/members/{member_id}", response_model=TeamsResponse)
async def remove_member(session_id: str, team_id: str, member_id: str) -> TeamsResponse:
    """Remove a member from a team."""
    session = _get_session(session_id)
    try:
        session.teams.remove_member(team_id, member_id)
    except TeamError as e:
        raise _team_http_error(e) from e
    return serialize_teams(session)


@router.post(
    "/{session_id}/teams/{team_id}/members/{member_id}/ready",
    response_model=TeamsResponse,
)
async def toggle_ready(session_id: str, team_id: str, member_id: str) -> TeamsResponse:
    """Flip a member's ready flag."""
    session = _get_session(session_id)
    try:
        session.teams.toggle_ready(team_id, member_id)
    except TeamError as e:
        raise _team_http_error(e) from e
    return serialize_teams(session)

"""LFG event and game version API endpoints."""

import logging
from datetime import date, datetime, time
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.db.models import Event, GameVersion
from apoxer.db.repositories.events import EventRepository
from apoxer.db.repositories.games import GameRepository
from apoxer.db.session import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])


class EventResponse(BaseModel):
    """An LFG event."""

    id: str
    game_id: str = Field(alias="gameId")
    game_version_id: str | None = Field(default=None, alias="gameVersionId")
    created_by: str | None = Field(default=None, alias="createdBy")
    description: str | None = None
    tags: list[str]
    players_needed: int = Field(alias="playersNeeded")
    players_have: int = Field(alias="playersHave")
    start_date: date = Field(alias="startDate")
    start_time: time = Field(alias="startTime")
    start_datetime: datetime = Field(alias="startDatetime")
    language: str
    platform: str | None = None
    status: str
    participants: list[str]
    participant_count: int = Field(alias="participantCount")

    model_config = {"populate_by_name": True}


class CreateEventRequest(BaseModel):
    """Request body for creating an event."""

    game_id: str = Field(alias="gameId")
    created_by: str | None = Field(default=None, alias="createdBy")
    start_date: date = Field(alias="startDate")
    start_time: time = Field(alias="startTime")
    players_needed: int = Field(alias="playersNeeded", ge=1, le=100)
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    language: str = "English"
    platform: str | None = None
    game_version_id: str | None = Field(default=None, alias="gameVersionId")

    model_config = {"populate_by_name": True}


class VersionResponse(BaseModel):
    """A game version events can target."""

    id: str
    game_id: str = Field(alias="gameId")
    version_name: str = Field(alias="versionName")
    created_by: str | None = Field(default=None, alias="createdBy")
    created_at: datetime = Field(alias="createdAt")

    model_config = {"populate_by_name": True}


class CreateVersionRequest(BaseModel):
    """Request body for creating a game version."""

    version_name: str = Field(alias="versionName", min_length=1, max_length=100)
    user_id: str | None = Field(default=None, alias="userId")

    model_config = {"populate_by_name": True}


class JoinEventRequest(BaseModel):
    """Request body for joining an event."""

    user_id: str = Field(alias="userId")

    model_config = {"populate_by_name": True}


class ParticipantResponse(BaseModel):
    """A user's seat in an event."""

    event_id: str = Field(alias="eventId")
    user_id: str = Field(alias="userId")
    joined_at: datetime = Field(alias="joinedAt")

    model_config = {"populate_by_name": True}


def serialize_event(event: Event) -> EventResponse:
    """Convert an events row (participants loaded) to its API shape."""
    participants = [p.user_id for p in event.participants]
    return EventResponse(
        id=event.id,
        game_id=event.game_id,
        game_version_id=event.game_version_id,
        created_by=event.created_by,
        description=event.description,
        tags=list(event.tags or []),
        players_needed=event.players_needed,
        players_have=event.players_have,
        start_date=event.start_date,
        start_time=event.start_time,
        start_datetime=event.start_datetime,
        language=event.language,
        platform=event.platform,
        status=event.status,
        participants=participants,
        participant_count=len(participants),
    )


def serialize_version(version: GameVersion) -> VersionResponse:
    return VersionResponse(
        id=version.id,
        game_id=version.game_id,
        version_name=version.version_name,
        created_by=version.created_by,
        created_at=version.created_at,
    )


@router.get("/games/{game_id}/events", response_model=list[EventResponse])
async def list_game_events(
    game_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> list[EventResponse]:
    """List active events for a game, soonest first."""
    events = await EventRepository(db).list_by_game(game_id)
    return [serialize_event(e) for e in events]


@router.get("/events/upcoming", response_model=list[EventResponse])
async def list_upcoming_events(
    limit: int = Query(4, ge=1, le=50),
    db: Annotated[AsyncSession, Depends(get_db_session)] = ...,
) -> list[EventResponse]:
    """List upcoming active events across all games."""
    events = await EventRepository(db).list_upcoming(limit=limit)
    return [serialize_event(e) for e in events]


@router.post("/events", response_model=EventResponse, status_code=201)
async def create_event(
    request: CreateEventRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> EventResponse:
    """Create an LFG event.

    Raises:
        HTTPException: 404 if the game or the game version does not exist
    """
    game = await GameRepository(db).get_by_id(request.game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")

    repository = EventRepository(db)
    if request.game_version_id is not None:
        versions = await repository.list_versions(game.id)
        if not any(v.id == request.game_version_id for v in versions):
            raise HTTPException(status_code=404, detail="Game version not found")

    event = await repository.create_event(
        game_id=game.id,
        created_by=request.created_by,
        start_date=request.start_date,
        start_time=request.start_time,
        players_needed=request.players_needed,
        description=request.description,
        tags=request.tags,
        language=request.language,
        platform=request.platform,
        game_version_id=request.game_version_id,
    )
    return serialize_event(event)


@router.post(
    "/events/{event_id}/participants",
    response_model=ParticipantResponse,
    status_code=201,
)
async def join_event(
    event_id: str,
    request: JoinEventRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ParticipantResponse:
    """Join an event.

    Raises:
        HTTPException: 404 if the event does not exist, 409 if already joined
    """
    repository = EventRepository(db)
    event = await repository.get_by_id(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    if any(p.user_id == request.user_id for p in event.participants):
        raise HTTPException(status_code=409, detail="Already joined this event")

    participant = await repository.join(event_id, request.user_id)
    return ParticipantResponse(
        event_id=participant.event_id,
        user_id=participant.user_id,
        joined_at=participant.joined_at,
    )


@router.delete("/events/{event_id}/participants/{user_id}", status_code=204)
async def leave_event(
    event_id: str,
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> Response:
    """Leave an event.

    Raises:
        HTTPException: 404 if the user is not a participant
    """
    removed = await EventRepository(db).leave(event_id, user_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Not a participant of this event")
    return Response(status_code=204)


@router.get("/games/{game_id}/versions", response_model=list[VersionResponse])
async def list_versions(
    game_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> list[VersionResponse]:
    """List versions of a game, newest first."""
    versions = await EventRepository(db).list_versions(game_id)
    return [serialize_version(v) for v in versions]


@router.post("/games/{game_id}/versions", response_model=VersionResponse, status_code=201)
async def create_version(
    game_id: str,
    request: CreateVersionRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> VersionResponse:
    """Create a game version.

    Raises:
        HTTPException: 404 if the game does not exist, 409 if the name is taken
    """
    if await GameRepository(db).get_by_id(game_id) is None:
        raise HTTPException(status_code=404, detail="Game not found")

    repository = EventRepository(db)
    name = request.version_name.strip()
    if await repository.get_version(game_id, name) is not None:
        raise HTTPException(status_code=409, detail=f"Version {name!r} already exists")

    version = await repository.create_version(game_id, name, request.user_id)
    return serialize_version(version)

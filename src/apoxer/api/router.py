"""Main API router."""

from fastapi import APIRouter

from apoxer.api.dev import router as dev_router
from apoxer.api.events import router as events_router
from apoxer.api.games import router as games_router
from apoxer.api.image_colors import router as image_colors_router
from apoxer.api.lobby import router as lobby_router
from apoxer.api.players import router as players_router
from apoxer.api.profiles import router as profiles_router
from apoxer.api.user_games import router as user_games_router

api_router = APIRouter()
api_router.include_router(games_router)
api_router.include_router(players_router)
api_router.include_router(events_router)
api_router.include_router(profiles_router)
api_router.include_router(user_games_router)
api_router.include_router(image_colors_router)
api_router.include_router(lobby_router)
api_router.include_router(dev_router)

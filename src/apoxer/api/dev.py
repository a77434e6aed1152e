"""Development-only seeding endpoints.

Mounted always, but every route answers 404 unless ``DEV_MODE`` is on.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.api.rate_limit import dev_seed_rate_limit
from apoxer.db.session import get_db_session
from apoxer.seeding.catalog import seed_games
from apoxer.seeding.events import seed_events
from apoxer.settings import get_settings

logger = logging.getLogger(__name__)


async def require_dev_mode() -> None:
    """Hide the route unless dev mode is enabled."""
    if not get_settings().dev_mode:
        raise HTTPException(status_code=404, detail="Not Found")


router = APIRouter(
    prefix="/dev",
    tags=["dev"],
    dependencies=[Depends(require_dev_mode), Depends(dev_seed_rate_limit)],
)


@router.post("/seed")
async def seed(db: Annotated[AsyncSession, Depends(get_db_session)]) -> dict[str, Any]:
    """Seed the game catalogue and communities."""
    result = await seed_games(db)
    logger.info(f"Dev seed: {result.games_inserted} games inserted")
    return {"success": not result.errors, **result.to_dict()}


@router.post("/seed-events")
async def seed_sample_events(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> dict[str, Any]:
    """Seed game versions and sample LFG events."""
    result = await seed_events(db)
    logger.info(f"Dev seed-events: {result.events_created} events created")
    return {"success": not result.errors, **result.to_dict()}

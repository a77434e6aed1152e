"""``apoxer-seed`` command line: one-shot database seeding tasks."""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click
from sqlalchemy.ext.asyncio import AsyncSession

from apoxer.settings import get_settings

logger = logging.getLogger(__name__)


def _run(task: Callable[[AsyncSession], Awaitable[Any]]) -> None:
    """Run a seeding task in its own session, print its summary and set the exit code."""
    from apoxer.db.session import async_session_factory, dispose_engine

    async def _main() -> Any:
        try:
            async with async_session_factory() as session:
                result = await task(session)
                await session.commit()
                return result
        finally:
            await dispose_engine()

    try:
        result = asyncio.run(_main())
    except Exception as e:
        logger.exception("Seeding failed")
        click.echo(f"Fatal error: {e}", err=True)
        sys.exit(1)

    summary = result.to_dict()
    click.echo(json.dumps(summary, indent=2))
    if summary.get("errors"):
        for error in summary["errors"]:
            click.echo(f"  - {error}", err=True)
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output.")
def cli(verbose: bool) -> None:
    """Seed the Apoxer database."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@cli.command("games")
def games_command() -> None:
    """Upsert the built-in game catalogue and its communities."""
    from apoxer.seeding.catalog import seed_games

    _run(seed_games)


@cli.command("events")
@click.option("--created-by", default=None, help="User id recorded as creator.")
def events_command(created_by: str | None) -> None:
    """Create sample game versions and LFG events."""
    from apoxer.seeding.events import seed_events

    _run(lambda session: seed_events(session, created_by=created_by))


def _media_command(kind: str, offset: int, limit: int, batch_size: int) -> None:
    from apoxer.seeding.steamgriddb import SteamGridDBClient, fill_covers, fill_heroes

    settings = get_settings()
    if not settings.steamgriddb_enabled:
        click.echo(
            "Missing STEAMGRIDDB_API_KEY. Get one from "
            "https://www.steamgriddb.com/profile/preferences/api",
            err=True,
        )
        sys.exit(1)

    fill = fill_covers if kind == "covers" else fill_heroes

    async def task(session: AsyncSession) -> Any:
        async with SteamGridDBClient(
            settings.steamgriddb_api_key,
            base_url=settings.steamgriddb_api_base,
        ) as client:
            return await fill(session, client, offset=offset, limit=limit, batch_size=batch_size)

    _run(task)


@cli.command("covers")
@click.option("--offset", default=0, show_default=True, help="First game (by title order).")
@click.option("--limit", default=1000, show_default=True, help="Number of games to process.")
@click.option("--batch-size", default=25, show_default=True, help="Concurrent lookups.")
def covers_command(offset: int, limit: int, batch_size: int) -> None:
    """Fetch missing cover images from SteamGridDB."""
    _media_command("covers", offset, limit, batch_size)


@cli.command("heroes")
@click.option("--offset", default=0, show_default=True, help="First game (by title order).")
@click.option("--limit", default=1000, show_default=True, help="Number of games to process.")
@click.option("--batch-size", default=25, show_default=True, help="Concurrent lookups.")
def heroes_command(offset: int, limit: int, batch_size: int) -> None:
    """Fetch missing hero banners from SteamGridDB."""
    _media_command("heroes", offset, limit, batch_size)


if __name__ == "__main__":
    cli()

"""FastAPI application entry point."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from apoxer.api.rate_limit import limiter
from apoxer.api.router import api_router
from apoxer.db.session import dispose_engine
from apoxer.lobby.session import get_lobby_session_manager, init_lobby_session_manager
from apoxer.settings import get_settings
from apoxer.ws.lobby_handler import handle_lobby_websocket


def setup_logging() -> None:
    """Configure logging for the application."""
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Set specific loggers
    logging.getLogger("apoxer").setLevel(logging.DEBUG)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# Set up logging on import
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Apoxer server (dev_mode={settings.dev_mode})")

    storage_path = settings.lobby_storage_path
    if storage_path is not None:
        storage_path.mkdir(parents=True, exist_ok=True)
    init_lobby_session_manager(
        storage_dir=storage_path,
        poll_interval_seconds=settings.lobby_poll_interval_seconds,
        fetch_timeout_seconds=settings.availability_fetch_timeout_seconds,
        countdown_seconds=settings.lobby_countdown_seconds,
    )

    yield

    # Shutdown
    logger.info("Shutting down Apoxer server")
    await get_lobby_session_manager().close_all()
    await dispose_engine()


app = FastAPI(
    title="Apoxer",
    description="Gaming community API",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
# In dev mode, allow localhost. In production, allow the configured frontend URL.
settings = get_settings()
cors_origins = (
    ["http://localhost:3000", "http://127.0.0.1:3000"]
    if settings.dev_mode
    else [settings.frontend_url]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Apoxer API", "version": "0.1.0"}


# Include API routers
app.include_router(api_router, prefix="/api")


# WebSocket endpoint for lobby session updates
@app.websocket("/ws/lobby/{session_id}")
async def lobby_websocket_endpoint(websocket: WebSocket, session_id: str) -> None:
    """WebSocket endpoint for lobby session real-time communication."""
    await handle_lobby_websocket(websocket, session_id)

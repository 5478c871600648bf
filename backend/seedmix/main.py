from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, playlists, recommend, search
from .cache.redis import redis
from .core.config import get_settings
from .core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await redis.aclose()


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)
    app = FastAPI(
        title="Seedmix Playlist Backend",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )
    app.include_router(health.router)
    app.include_router(search.router)
    app.include_router(recommend.router)
    app.include_router(playlists.router)
    return app


app = create_app()

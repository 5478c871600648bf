from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from redis.asyncio import Redis

from ..cache.redis import RecommendationCache, get_redis
from ..core.config import Settings, get_settings
from ..core.security import extract_spotify_access_token
from ..spotify.client import SpotifyClient


async def get_settings_dep() -> Settings:
    return get_settings()


async def get_access_token(request: Request) -> str:
    return extract_spotify_access_token(request)


async def get_redis_dep() -> AsyncIterator[Redis]:
    async for client in get_redis():
        yield client


async def get_recommendation_cache(
    settings: Settings = Depends(get_settings_dep),
    redis: Redis = Depends(get_redis_dep),
) -> RecommendationCache | None:
    if not settings.cache_enabled:
        return None
    return RecommendationCache(client=redis)


async def get_spotify_client(
    token: str = Depends(get_access_token),
    settings: Settings = Depends(get_settings_dep),
) -> AsyncIterator[SpotifyClient]:
    client = SpotifyClient(
        access_token=token,
        timeout=settings.http_timeout_seconds,
        max_attempts=settings.http_max_attempts,
        base_url=settings.spotify_api_base,
    )
    try:
        yield client
    finally:
        await client.close()

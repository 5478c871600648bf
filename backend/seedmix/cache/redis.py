from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..core.config import get_settings
from ..core.security import token_fingerprint
from ..services.models import RecommendationResult, Seed

logger = logging.getLogger("seedmix.cache")

settings = get_settings()

redis = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)


async def get_redis() -> AsyncIterator[Redis]:
    try:
        yield redis
    finally:
        # keep connection open for reuse; do not close
        pass


def cache_key(seed: Seed, access_token: str) -> str:
    return f"{seed.kind}:{seed.id}:{token_fingerprint(access_token)}"


@dataclass(slots=True)
class RecommendationCache:
    """Short-lived recommendation results keyed per (seed, token)."""

    client: Redis
    prefix: str = "seedmix:rec"

    async def get(self, key: str) -> Optional[RecommendationResult]:
        try:
            raw = await self.client.get(f"{self.prefix}:{key}")
        except RedisError as exc:
            logger.warning("Recommendation cache read failed: %s", exc)
            return None
        if not raw:
            return None
        try:
            return RecommendationResult.from_dict(json.loads(raw))
        except (TypeError, ValueError) as exc:
            logger.warning("Discarding malformed cache entry %s: %s", key, exc)
            return None

    async def set(self, key: str, result: RecommendationResult, *, ttl: int) -> None:
        try:
            await self.client.set(f"{self.prefix}:{key}", json.dumps(result.to_dict()), ex=ttl)
        except RedisError as exc:
            logger.warning("Recommendation cache write failed: %s", exc)

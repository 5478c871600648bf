from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends

from ...cache.redis import RecommendationCache
from ...core.config import ConfigurationMissing, Settings
from ...core.security import token_fingerprint, verify_service_token
from ...remote.client import RemoteError
from ...schemas.recommend import (
    RecommendRequest,
    RecommendResponse,
    TagRecommendRequest,
    TagRecommendResponse,
)
from ...services.models import Seed
from ...services.recommendations import generate_recommendations, improve_recommendations_with_tags
from ...spotify.client import SpotifyClient
from ...spotify.parsing import track_id_from_uri
from ..deps import get_access_token, get_recommendation_cache, get_settings_dep, get_spotify_client
from ..errors import to_http_error

logger = logging.getLogger("recommendations.api")

router = APIRouter(prefix="/v1", tags=["recommendations"], dependencies=[Depends(verify_service_token)])


@router.post("/recommendations", response_model=RecommendResponse)
async def create_recommendations(
    payload: RecommendRequest,
    *,
    token: str = Depends(get_access_token),
    spotify_client: SpotifyClient = Depends(get_spotify_client),
    cache: RecommendationCache | None = Depends(get_recommendation_cache),
    settings: Settings = Depends(get_settings_dep),
) -> RecommendResponse:
    seed = Seed(
        kind=payload.seed_type,
        id=payload.seed_id,
        display_name=(payload.seed_name or "").strip(),
        artist_name=(payload.artist_name or "").strip(),
    )
    try:
        api_key = settings.require_lastfm_api_key()
        result = await generate_recommendations(
            seed,
            token,
            api_key,
            token_fingerprint(token)[:12],
            settings=settings,
            cache=cache,
        )
        if not result.track_uris:
            return RecommendResponse(source=result.source)

        track_ids = [track_id for track_id in map(track_id_from_uri, result.track_uris) if track_id]
        tracks = await spotify_client.get_tracks(track_ids[: settings.max_tracks_per_response])
    except (RemoteError, ConfigurationMissing, asyncio.TimeoutError) as exc:
        logger.error("Error generating recommendations for %s %s: %s", seed.kind, seed.id, exc)
        raise to_http_error(exc) from exc

    return RecommendResponse(
        source=result.source,
        track_uris=result.track_uris,
        boosted_uris=result.boosted_uris,
        tracks=tracks,
    )


@router.post("/recommendations/tags", response_model=TagRecommendResponse)
async def create_tag_recommendations(
    payload: TagRecommendRequest,
    *,
    token: str = Depends(get_access_token),
    settings: Settings = Depends(get_settings_dep),
) -> TagRecommendResponse:
    try:
        api_key = settings.require_lastfm_api_key()
        result = await improve_recommendations_with_tags(payload.artist, token, api_key, settings=settings)
    except (RemoteError, ConfigurationMissing, asyncio.TimeoutError) as exc:
        logger.error("Tag recommendations failed for %s: %s", payload.artist, exc)
        raise to_http_error(exc) from exc
    return TagRecommendResponse(uris=result["uris"])

from __future__ import annotations

import asyncio
import dataclasses
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional, Sequence, Set, Tuple

from ..cache.redis import RecommendationCache, cache_key
from ..core.config import Settings
from ..lastfm.client import LastFmClient
from ..remote.client import RemoteAuthError, RemoteError
from ..spotify.client import SpotifyClient
from .fallback import TagBroadening
from .models import RecommendationResult, Seed, SimilarityCandidate, dedupe_uris
from .resolver import CatalogResolver
from .similarity import SimilaritySource

logger = logging.getLogger("recommendations")

Resolution = Tuple[SimilarityCandidate, Optional[str]]


@dataclass(slots=True)
class RecommendationOrchestrator:
    source: SimilaritySource
    resolver: CatalogResolver
    fallback: TagBroadening
    spotify: SpotifyClient
    cache: RecommendationCache | None = None
    resolver_concurrency: int = 5
    candidate_limit: int = 30
    cache_ttl: int = 300

    async def generate(self, seed: Seed, *, access_token: str, user_id: str = "") -> RecommendationResult:
        key = cache_key(seed, access_token) if self.cache is not None else None
        if key is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                logger.info("Serving cached recommendations for %s %s", seed.kind, seed.id)
                return cached

        seed = await self._describe_seed(seed)
        listening = asyncio.create_task(self._listening_artists(user_id))
        try:
            candidates = await self._collect_candidates(seed)
            resolutions = await self._resolve_all(candidates)
            listening_artists = await listening
        finally:
            if not listening.done():
                listening.cancel()

        track_uris = dedupe_uris(uri for _, uri in resolutions)
        source = "similar" if track_uris else "none"
        logger.info(
            "Resolved %s of %s candidates for %s %s",
            len(track_uris),
            len(candidates),
            seed.kind,
            seed.id,
        )

        if not candidates and seed.artist_name:
            logger.info("No similar candidates for %s, broadening with tags", seed.artist_name)
            track_uris = dedupe_uris(await self.fallback.broaden(seed.artist_name))
            source = "tags" if track_uris else "none"
            resolutions = []

        result = RecommendationResult(
            track_uris=track_uris,
            source=source,
            boosted_uris=_boosted(resolutions, listening_artists),
        )
        if key is not None:
            await self.cache.set(key, result, ttl=self.cache_ttl)
        return result

    async def improve_with_tags(self, artist: str) -> List[str]:
        return dedupe_uris(await self.fallback.improve_recommendations_with_tags(artist))

    async def _describe_seed(self, seed: Seed) -> Seed:
        if seed.kind == "track":
            if seed.display_name and seed.artist_name:
                return seed
            payload = await self.spotify.get_track(seed.id)
            artists = payload.get("artists") or []
            artist_name = seed.artist_name or (artists[0].get("name") if artists else "") or ""
            return dataclasses.replace(
                seed,
                display_name=seed.display_name or payload.get("name") or "",
                artist_name=artist_name,
            )

        name = seed.artist_name or seed.display_name
        if not name:
            payload = await self.spotify.get_artist(seed.id)
            name = payload.get("name") or ""
        return dataclasses.replace(seed, display_name=seed.display_name or name, artist_name=name)

    async def _collect_candidates(self, seed: Seed) -> List[SimilarityCandidate]:
        if seed.kind == "track":
            candidates = await self.source.similar_tracks(seed.artist_name, seed.display_name)
            return candidates[: self.candidate_limit]

        candidates: List[SimilarityCandidate] = []
        for artist in await self.source.similar_artists(seed.artist_name):
            if len(candidates) >= self.candidate_limit:
                break
            try:
                candidates.extend(await self.source.top_tracks_for_artist(artist))
            except RemoteAuthError:
                raise
            except RemoteError as exc:
                logger.warning("Top tracks unavailable for %s: %s", artist, exc)
        return candidates[: self.candidate_limit]

    async def _resolve_all(self, candidates: Sequence[SimilarityCandidate]) -> List[Resolution]:
        semaphore = asyncio.Semaphore(max(1, self.resolver_concurrency))

        async def _resolve(candidate: SimilarityCandidate) -> Resolution:
            async with semaphore:
                uri = await self.resolver.resolve(candidate.artist_name, candidate.track_name)
            return candidate, uri

        tasks = [asyncio.create_task(_resolve(candidate)) for candidate in candidates]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # gather leaves siblings running when one fails
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _listening_artists(self, user_id: str) -> Set[str]:
        try:
            top_tracks = await self.source.user_top_tracks()
        except RemoteError as exc:
            logger.warning("User top tracks unavailable for %s: %s", user_id or "current user", exc)
            return set()
        return {candidate.artist_name.casefold() for candidate in top_tracks if candidate.artist_name}


def _boosted(resolutions: Sequence[Resolution], listening_artists: Set[str]) -> List[str]:
    if not listening_artists:
        return []
    return dedupe_uris(
        uri for candidate, uri in resolutions if uri and candidate.artist_name.casefold() in listening_artists
    )


@asynccontextmanager
async def open_orchestrator(
    access_token: str,
    api_key: str,
    *,
    settings: Settings,
    cache: RecommendationCache | None = None,
) -> AsyncIterator[RecommendationOrchestrator]:
    lastfm = LastFmClient(
        api_key=api_key,
        timeout=settings.http_timeout_seconds,
        max_attempts=settings.http_max_attempts,
        base_url=settings.lastfm_api_base,
    )
    spotify = SpotifyClient(
        access_token=access_token,
        timeout=settings.http_timeout_seconds,
        max_attempts=settings.http_max_attempts,
        base_url=settings.spotify_api_base,
    )
    source = SimilaritySource(
        lastfm=lastfm,
        spotify=spotify,
        candidate_limit=settings.candidate_limit,
        top_tracks_limit=settings.artist_top_tracks_limit,
        tag_limit=settings.tag_limit,
    )
    resolver = CatalogResolver(spotify=spotify)
    try:
        yield RecommendationOrchestrator(
            source=source,
            resolver=resolver,
            fallback=TagBroadening(source=source, resolver=resolver),
            spotify=spotify,
            cache=cache,
            resolver_concurrency=settings.resolver_concurrency,
            candidate_limit=settings.candidate_limit,
            cache_ttl=settings.recommendation_cache_ttl,
        )
    finally:
        await spotify.close()
        await lastfm.close()


async def generate_recommendations(
    seed: Seed,
    access_token: str,
    api_key: str,
    user_id: str,
    *,
    settings: Settings,
    cache: RecommendationCache | None = None,
) -> RecommendationResult:
    async with open_orchestrator(access_token, api_key, settings=settings, cache=cache) as orchestrator:
        return await asyncio.wait_for(
            orchestrator.generate(seed, access_token=access_token, user_id=user_id),
            timeout=settings.recommendation_timeout_seconds,
        )


async def improve_recommendations_with_tags(
    artist: str,
    access_token: str,
    api_key: str,
    *,
    settings: Settings,
) -> Dict[str, List[str]]:
    async with open_orchestrator(access_token, api_key, settings=settings) as orchestrator:
        uris = await asyncio.wait_for(
            orchestrator.improve_with_tags(artist),
            timeout=settings.recommendation_timeout_seconds,
        )
    return {"uris": uris}

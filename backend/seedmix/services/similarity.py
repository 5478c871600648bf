from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from ..lastfm.client import LastFmClient
from ..spotify.client import SpotifyClient
from .models import SimilarityCandidate, Tag

logger = logging.getLogger("recommendations.similarity")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _artist_name(item: Dict[str, Any]) -> str:
    artist = item.get("artist")
    if isinstance(artist, dict):
        return _text(artist.get("name"))
    return _text(artist)


@dataclass(slots=True)
class SimilaritySource:
    """Similar tracks, artists and tags from Last.fm plus the Spotify lookups used to expand them."""

    lastfm: LastFmClient
    spotify: SpotifyClient
    candidate_limit: int = 30
    top_tracks_limit: int = 10
    tag_limit: int = 5

    async def similar_tracks(self, artist: str, track: str) -> List[SimilarityCandidate]:
        raws = await self.lastfm.similar_tracks(artist, track)
        candidates: List[SimilarityCandidate] = []
        for raw in raws[: self.candidate_limit]:
            candidate = SimilarityCandidate(artist_name=_artist_name(raw), track_name=_text(raw.get("name")))
            if candidate.artist_name or candidate.track_name:
                candidates.append(candidate)
        logger.info("Last.fm returned %s similar tracks for %s - %s", len(candidates), artist, track)
        return candidates

    async def similar_artists(self, artist: str) -> List[str]:
        raws = await self.lastfm.similar_artists(artist)
        names = [_text(raw.get("name")) for raw in raws[: self.candidate_limit]]
        names = [name for name in names if name]
        logger.info("Last.fm returned %s similar artists for %s", len(names), artist)
        return names

    async def top_tracks_for_artist(self, artist: str) -> List[SimilarityCandidate]:
        items = await self.spotify.search_tracks(artist, limit=self.top_tracks_limit)
        return [
            SimilarityCandidate(artist_name=artist, track_name=_text(item.get("name")))
            for item in items
            if _text(item.get("name"))
        ]

    async def user_top_tracks(self) -> List[SimilarityCandidate]:
        items = await self.spotify.get_user_top_tracks()
        out: List[SimilarityCandidate] = []
        for item in items:
            artists = item.get("artists") or []
            first = artists[0] if artists and isinstance(artists[0], dict) else {}
            name = _text(first.get("name"))
            if name:
                out.append(SimilarityCandidate(artist_name=name, track_name=_text(item.get("name"))))
        return out

    async def top_tags(self, artist: str) -> List[Tag]:
        raws = await self.lastfm.artist_top_tags(artist)
        tags = [Tag(name=_text(raw.get("name"))) for raw in raws[: self.tag_limit]]
        return [tag for tag in tags if tag.name]

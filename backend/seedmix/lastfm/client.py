from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import httpx

from ..core.config import ConfigurationMissing
from ..remote.client import RemoteClient

API_BASE = "https://ws.audioscrobbler.com/2.0/"

logger = logging.getLogger("lastfm.client")


def _extract_list(data: Dict[str, Any] | None, container: str, key: str) -> List[Dict[str, Any]]:
    # { similartracks: { track: [ ... ] } }; a single hit comes back as a bare object
    block = (data or {}).get(container)
    if not isinstance(block, dict):
        return []
    items = block.get(key) or []
    if isinstance(items, dict):
        items = [items]
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


@dataclass(slots=True)
class LastFmClient:
    api_key: str
    timeout: float = 15.0
    max_attempts: int = 5
    base_url: str = API_BASE
    transport: httpx.AsyncBaseTransport | None = None
    remote: RemoteClient | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigurationMissing("Last.fm API key not configured.")
        if self.remote is None:
            self.remote = RemoteClient(
                base_url=self.base_url,
                timeout=self.timeout,
                max_attempts=self.max_attempts,
                service="lastfm",
                transport=self.transport,
            )

    async def close(self) -> None:
        if self.remote is not None:
            await self.remote.close()

    async def _get(self, params: Dict[str, Any]) -> Dict[str, Any] | None:
        params = dict(params)
        logger.debug("Last.fm %s artist=%r track=%r", params.get("method"), params.get("artist"), params.get("track"))
        params.update({
            "api_key": self.api_key,
            "format": "json",
        })
        return await self.remote.request("GET", "", params=params)

    async def similar_tracks(self, artist: str, track: str) -> List[Dict[str, Any]]:
        data = await self._get({
            "method": "track.getsimilar",
            "artist": artist,
            "track": track,
        })
        return _extract_list(data, "similartracks", "track")

    async def similar_artists(self, artist: str) -> List[Dict[str, Any]]:
        data = await self._get({
            "method": "artist.getsimilar",
            "artist": artist,
        })
        return _extract_list(data, "similarartists", "artist")

    async def artist_top_tags(self, artist: str) -> List[Dict[str, Any]]:
        data = await self._get({
            "method": "artist.getTopTags",
            "artist": artist,
        })
        return _extract_list(data, "toptags", "tag")

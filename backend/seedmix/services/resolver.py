from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..remote.client import RemoteAuthError, RemoteError
from ..spotify.client import SpotifyClient

logger = logging.getLogger("recommendations.resolver")


@dataclass(slots=True)
class CatalogResolver:
    spotify: SpotifyClient

    async def resolve(self, artist: str, track: str) -> Optional[str]:
        query = f"{(track or '').strip()} {(artist or '').strip()}".strip()
        return await self.search_uri(query)

    async def search_uri(self, query: str) -> Optional[str]:
        """First track URI for a flat text query, ``None`` on a miss."""
        query = query.strip()
        if not query:
            return None
        try:
            items = await self.spotify.search_tracks(query, limit=1)
        except RemoteAuthError:
            raise
        except RemoteError as exc:
            logger.debug("Search failed for %r: %s", query, exc)
            return None
        if not items:
            logger.debug("No catalog match for %r", query)
            return None
        uri = items[0].get("uri")
        return str(uri) if uri else None

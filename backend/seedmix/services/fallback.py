from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from ..remote.client import RemoteAuthError, RemoteError
from .resolver import CatalogResolver
from .similarity import SimilaritySource

logger = logging.getLogger("recommendations.fallback")


@dataclass(slots=True)
class TagBroadening:
    source: SimilaritySource
    resolver: CatalogResolver

    async def broaden(self, artist: str) -> List[str]:
        """Search the catalog for ``"<artist> <tag>"`` for each of the artist's top tags.

        URIs come back in tag order. Repeats across tags are kept.
        """
        tags = await self.source.top_tags(artist)
        logger.info("Broadening %s with tags %s", artist, [tag.name for tag in tags])
        uris: List[str] = []
        for tag in tags:
            uri = await self.resolver.search_uri(f"{artist} {tag.name}".strip())
            if uri:
                uris.append(uri)
        return uris

    async def improve_recommendations_with_tags(self, artist: str) -> List[str]:
        try:
            similar = await self.source.similar_tracks(artist, "")
        except RemoteAuthError:
            raise
        except RemoteError as exc:
            logger.warning("Similar tracks unavailable for %s, using tags: %s", artist, exc)
            similar = []
        if not similar:
            return await self.broaden(artist)

        uris: List[str] = []
        for candidate in similar:
            uri = await self.resolver.resolve(candidate.artist_name, candidate.track_name)
            if uri:
                uris.append(uri)
        return uris

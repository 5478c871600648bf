from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence

import httpx

from ..remote.client import RemoteClient

API_BASE = "https://api.spotify.com/v1"

logger = logging.getLogger("spotify.client")


@dataclass(slots=True)
class SpotifyClient:
    access_token: str
    timeout: float = 15.0
    max_attempts: int = 5
    base_url: str = API_BASE
    transport: httpx.AsyncBaseTransport | None = None
    remote: RemoteClient | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.remote is None:
            self.remote = RemoteClient(
                base_url=self.base_url,
                headers={"Authorization": f"Bearer {self.access_token}", "Content-Type": "application/json"},
                timeout=self.timeout,
                max_attempts=self.max_attempts,
                service="spotify",
                transport=self.transport,
            )

    async def close(self) -> None:
        if self.remote is not None:
            await self.remote.close()

    async def _get(self, url: str, params: Dict[str, Any] | None = None) -> Dict[str, Any]:
        return await self.remote.request("GET", url.lstrip("/"), params=params) or {}

    async def search(self, query: str, *, types: Sequence[str] = ("track",), limit: int = 10) -> Dict[str, Any]:
        return await self._get("/search", params={"q": query, "type": ",".join(types), "limit": limit})

    async def search_tracks(self, query: str, *, limit: int = 10) -> List[Dict[str, Any]]:
        payload = await self.search(query, types=("track",), limit=limit)
        items = (payload.get("tracks") or {}).get("items") or []
        return [item for item in items if isinstance(item, dict)]

    async def get_track(self, track_id: str) -> Dict[str, Any]:
        return await self._get(f"/tracks/{track_id}")

    async def get_tracks(self, track_ids: Iterable[str]) -> List[Dict[str, Any]]:
        ids = [track_id for track_id in track_ids if track_id]
        out: List[Dict[str, Any]] = []
        for chunk_start in range(0, len(ids), 50):
            chunk = ids[chunk_start: chunk_start + 50]
            payload = await self._get("/tracks", params={"ids": ",".join(chunk)})
            out.extend(track for track in payload.get("tracks", []) or [] if track)
        return out

    async def get_artist(self, artist_id: str) -> Dict[str, Any]:
        return await self._get(f"/artists/{artist_id}")

    async def get_current_user(self) -> Dict[str, Any]:
        return await self._get("/me")

    async def get_user_top_tracks(self, *, limit: int = 50, time_range: str = "medium_term") -> List[Dict[str, Any]]:
        payload = await self._get("/me/top/tracks", params={"time_range": time_range, "limit": limit})
        return [item for item in payload.get("items", []) or [] if isinstance(item, dict)]

    async def create_playlist(
        self,
        user_id: str,
        name: str,
        *,
        description: str = "",
        public: bool = False,
    ) -> Dict[str, Any]:
        payload = await self.remote.request(
            "POST",
            f"users/{user_id}/playlists",
            json={"name": name, "description": description, "public": public},
        )
        logger.info("Created playlist %s for user %s", (payload or {}).get("id"), user_id)
        return payload or {}

    async def add_tracks_to_playlist(self, playlist_id: str, uris: Sequence[str]) -> int:
        added = 0
        for start in range(0, len(uris), 100):
            chunk = list(uris[start: start + 100])
            await self.remote.request("POST", f"playlists/{playlist_id}/tracks", json={"uris": chunk})
            added += len(chunk)
        return added

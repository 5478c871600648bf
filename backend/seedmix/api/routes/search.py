from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from ...core.security import verify_service_token
from ...remote.client import RemoteError
from ...spotify.client import SpotifyClient
from ..deps import get_spotify_client
from ..errors import to_http_error

router = APIRouter(prefix="/v1", tags=["search"], dependencies=[Depends(verify_service_token)])


@router.get("/search")
async def search_catalog(
    q: str = Query(..., min_length=1),
    spotify_client: SpotifyClient = Depends(get_spotify_client),
) -> Dict[str, Any]:
    try:
        return await spotify_client.search(q, types=("track", "artist"), limit=10)
    except RemoteError as exc:
        raise to_http_error(exc) from exc

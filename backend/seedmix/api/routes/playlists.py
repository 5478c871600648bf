from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.security import verify_service_token
from ...remote.client import RemoteError
from ...schemas.recommend import PlaylistCreateRequest, PlaylistCreateResponse
from ...spotify.client import SpotifyClient
from ..deps import get_spotify_client
from ..errors import to_http_error

logger = logging.getLogger("playlists.api")

router = APIRouter(prefix="/v1", tags=["playlists"], dependencies=[Depends(verify_service_token)])


@router.post("/playlists", response_model=PlaylistCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_playlist(
    payload: PlaylistCreateRequest,
    spotify_client: SpotifyClient = Depends(get_spotify_client),
) -> PlaylistCreateResponse:
    try:
        user = await spotify_client.get_current_user()
        user_id = user.get("id")
        if not user_id:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
        playlist = await spotify_client.create_playlist(
            user_id,
            payload.name.strip(),
            description=payload.description,
            public=payload.public,
        )
        playlist_id = playlist.get("id")
        if not playlist_id:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="playlist creation returned no id")
        added = await spotify_client.add_tracks_to_playlist(playlist_id, payload.uris)
    except RemoteError as exc:
        logger.error("Failed to create playlist %r: %s", payload.name, exc)
        raise to_http_error(exc) from exc

    return PlaylistCreateResponse(
        id=playlist_id,
        url=(playlist.get("external_urls") or {}).get("spotify"),
        added=added,
    )

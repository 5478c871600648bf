from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional

SPOTIFY_URL_RE = re.compile(
    r"https?://(?:open|play)\.spotify\.com/(?P<type>track|artist)/(?P<id>[A-Za-z0-9]{22})",
    re.IGNORECASE,
)
SPOTIFY_URI_RE = re.compile(r"spotify:(?P<type>track|artist):(?P<id>[A-Za-z0-9]{22})", re.IGNORECASE)
SPOTIFY_ID_RE = re.compile(r"^[A-Za-z0-9]{22}$")


@dataclass(slots=True)
class SpotifyEntity:
    kind: Literal["track", "artist"]
    id: str


def parse_spotify_url(value: str) -> SpotifyEntity:
    value = value.strip()
    m = SPOTIFY_URI_RE.match(value)
    if not m:
        m = SPOTIFY_URL_RE.search(value)
    if not m:
        raise ValueError("unsupported spotify url")
    kind = m.group("type").lower()
    spotify_id = m.group("id")
    return SpotifyEntity(kind=kind, id=spotify_id)


def normalize_seed_id(value: str, kind: str) -> str:
    """Accept a bare id, a URI or an open.spotify.com URL for ``kind``."""
    value = value.strip()
    if SPOTIFY_ID_RE.match(value):
        return value
    entity = parse_spotify_url(value)
    if entity.kind != kind:
        raise ValueError(f"expected a {kind} reference, got {entity.kind}")
    return entity.id


def track_id_from_uri(uri: str) -> Optional[str]:
    parts = uri.split(":")
    if len(parts) == 3 and parts[0] == "spotify" and parts[1] == "track" and parts[2]:
        return parts[2]
    return None

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..spotify.parsing import normalize_seed_id


class RecommendRequest(BaseModel):
    seed_id: str = Field(..., min_length=1, description="Spotify id, URI or URL of the seed")
    seed_type: Literal["track", "artist"]
    seed_name: Optional[str] = None
    artist_name: Optional[str] = None

    @model_validator(mode="after")
    def _normalize_seed(self) -> "RecommendRequest":
        self.seed_id = normalize_seed_id(self.seed_id, self.seed_type)
        return self


class RecommendResponse(BaseModel):
    source: Literal["similar", "tags", "none"] = "none"
    track_uris: List[str] = []
    boosted_uris: List[str] = []
    tracks: List[Dict[str, Any]] = []


class TagRecommendRequest(BaseModel):
    artist: str = Field(..., min_length=1)

    @field_validator("artist")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("artist must not be blank")
        return value


class TagRecommendResponse(BaseModel):
    uris: List[str] = []


class PlaylistCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    uris: List[str] = Field(..., min_length=1)
    description: str = ""
    public: bool = False

    @field_validator("uris")
    @classmethod
    def _only_track_uris(cls, value: List[str]) -> List[str]:
        cleaned = list(dict.fromkeys(uri.strip() for uri in value if uri and uri.strip()))
        bad = [uri for uri in cleaned if not uri.startswith("spotify:track:")]
        if bad:
            raise ValueError(f"not spotify track uris: {bad[:3]}")
        return cleaned


class PlaylistCreateResponse(BaseModel):
    id: str
    url: Optional[str] = None
    added: int = 0


class HealthResponse(BaseModel):
    ok: bool = True

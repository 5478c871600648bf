from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationMissing(RuntimeError):
    """A credential required before any remote call is absent."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="BACKEND_", extra="allow")

    environment: str = "development"
    log_level: str = "INFO"
    redis_url: str = "redis://redis:6379/0"
    cache_enabled: bool = True
    recommendation_cache_ttl: int = 300
    lastfm_api_key: str = ""
    lastfm_api_base: str = "https://ws.audioscrobbler.com/2.0/"
    spotify_api_base: str = "https://api.spotify.com/v1"
    service_token: str = ""
    http_timeout_seconds: float = 15.0
    http_max_attempts: int = 5
    candidate_limit: int = 30
    tag_limit: int = 5
    artist_top_tracks_limit: int = 10
    resolver_concurrency: int = 5
    recommendation_timeout_seconds: float = 120.0
    max_tracks_per_response: int = 50
    allow_origins: List[str] = ["*"]

    @field_validator("http_max_attempts", "resolver_concurrency", "candidate_limit", "tag_limit")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        return max(1, v)

    def require_lastfm_api_key(self) -> str:
        if not self.lastfm_api_key:
            raise ConfigurationMissing("Last.fm API key not configured.")
        return self.lastfm_api_key


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

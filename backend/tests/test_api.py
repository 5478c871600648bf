from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import pytest
from fastapi.testclient import TestClient

from seedmix.api import deps
from seedmix.api.routes import recommend as recommend_routes
from seedmix.core.config import ConfigurationMissing, Settings, get_settings
from seedmix.core.security import token_fingerprint
from seedmix.main import app
from seedmix.remote.client import RemoteAuthError, RemoteError
from seedmix.services.models import RecommendationResult

AUTH = {"Authorization": "Bearer user-token"}
SEED_ID = "5Z01UMMf7V1o0MzF86s6WJ"


@dataclass(slots=True)
class _StubSpotifyClient:
    tracks: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    search_error: Exception | None = None
    requested_ids: List[str] = field(default_factory=list)
    created: List[Dict[str, Any]] = field(default_factory=list)
    added: List[tuple[str, List[str]]] = field(default_factory=list)
    me_calls: int = 0

    async def get_current_user(self) -> Dict[str, Any]:
        self.me_calls += 1
        return {"id": "user-1", "display_name": "Listener"}

    async def get_tracks(self, track_ids: Sequence[str]) -> List[Dict[str, Any]]:
        self.requested_ids.extend(track_ids)
        return [self.tracks[track_id] for track_id in track_ids if track_id in self.tracks]

    async def search(self, query: str, *, types: Sequence[str] = ("track",), limit: int = 10) -> Dict[str, Any]:
        if self.search_error is not None:
            raise self.search_error
        return {"tracks": {"items": [{"name": query}]}, "artists": {"items": []}, "types": list(types), "limit": limit}

    async def create_playlist(self, user_id: str, name: str, *, description: str = "", public: bool = False) -> Dict[str, Any]:
        self.created.append({"user_id": user_id, "name": name, "description": description, "public": public})
        return {"id": "pl-1", "external_urls": {"spotify": "https://open.spotify.com/playlist/pl-1"}}

    async def add_tracks_to_playlist(self, playlist_id: str, uris: Sequence[str]) -> int:
        self.added.append((playlist_id, list(uris)))
        return len(uris)


@pytest.fixture()
def spotify_stub() -> _StubSpotifyClient:
    return _StubSpotifyClient(
        tracks={
            "X": {"id": "X", "name": "In Da Club", "uri": "spotify:track:X"},
            "Y": {"id": "Y", "name": "Without Me", "uri": "spotify:track:Y"},
        }
    )


@pytest.fixture()
def settings() -> Settings:
    return Settings(lastfm_api_key="lfm-key", service_token="", cache_enabled=False)


@pytest.fixture()
def client(spotify_stub, settings):
    async def _spotify():
        yield spotify_stub

    async def _no_cache():
        return None

    app.dependency_overrides[deps.get_spotify_client] = _spotify
    app.dependency_overrides[deps.get_settings_dep] = lambda: settings
    app.dependency_overrides[deps.get_recommendation_cache] = _no_cache
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/v1/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_missing_bearer_token_is_rejected(client):
    response = client.post("/v1/recommendations", json={"seed_id": SEED_ID, "seed_type": "track"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


def test_recommendations_return_full_tracks(client, spotify_stub, monkeypatch):
    captured: Dict[str, Any] = {}

    async def fake_generate(seed, access_token, api_key, user_id, *, settings, cache=None):
        captured.update(seed=seed, access_token=access_token, api_key=api_key, user_id=user_id, cache=cache)
        return RecommendationResult(
            track_uris=["spotify:track:X", "spotify:track:Y"],
            source="similar",
            boosted_uris=["spotify:track:Y"],
        )

    monkeypatch.setattr(recommend_routes, "generate_recommendations", fake_generate)

    response = client.post(
        "/v1/recommendations",
        headers=AUTH,
        json={
            "seed_id": f"spotify:track:{SEED_ID}",
            "seed_type": "track",
            "seed_name": "Lose Yourself",
            "artist_name": "Eminem",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["track_uris"] == ["spotify:track:X", "spotify:track:Y"]
    assert body["boosted_uris"] == ["spotify:track:Y"]
    assert body["source"] == "similar"
    assert [track["id"] for track in body["tracks"]] == ["X", "Y"]
    assert spotify_stub.requested_ids == ["X", "Y"]
    assert captured["seed"].id == SEED_ID
    assert captured["seed"].artist_name == "Eminem"
    assert captured["access_token"] == "user-token"
    assert captured["api_key"] == "lfm-key"
    assert captured["user_id"] == token_fingerprint("user-token")[:12]
    assert spotify_stub.me_calls == 0


def test_empty_recommendations_skip_track_lookup(client, spotify_stub, monkeypatch):
    async def fake_generate(*args, **kwargs):
        return RecommendationResult()

    monkeypatch.setattr(recommend_routes, "generate_recommendations", fake_generate)

    response = client.post("/v1/recommendations", headers=AUTH, json={"seed_id": SEED_ID, "seed_type": "track"})

    assert response.status_code == 200
    assert response.json()["tracks"] == []
    assert spotify_stub.requested_ids == []


def test_missing_lastfm_key_is_reported(client, settings):
    settings.lastfm_api_key = ""

    response = client.post("/v1/recommendations", headers=AUTH, json={"seed_id": SEED_ID, "seed_type": "track"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Last.fm API key not configured."


@pytest.mark.parametrize(
    "error, expected_status",
    [
        (RemoteAuthError(401, "expired", service="spotify"), 401),
        (RemoteError(503, "down", service="lastfm"), 502),
        (ConfigurationMissing("Last.fm API key not configured."), 500),
    ],
)
def test_upstream_errors_are_mapped(client, monkeypatch, error, expected_status):
    async def failing_generate(*args, **kwargs):
        raise error

    monkeypatch.setattr(recommend_routes, "generate_recommendations", failing_generate)

    response = client.post("/v1/recommendations", headers=AUTH, json={"seed_id": SEED_ID, "seed_type": "track"})

    assert response.status_code == expected_status


def test_seed_type_mismatch_is_unprocessable(client):
    response = client.post(
        "/v1/recommendations",
        headers=AUTH,
        json={"seed_id": "spotify:artist:7dGJo4pcD2V6oG8kP0tJRR", "seed_type": "track"},
    )
    assert response.status_code == 422


def test_tag_recommendations(client, monkeypatch):
    async def fake_improve(artist, access_token, api_key, *, settings):
        assert (artist, access_token, api_key) == ("Portishead", "user-token", "lfm-key")
        return {"uris": ["spotify:track:P"]}

    monkeypatch.setattr(recommend_routes, "improve_recommendations_with_tags", fake_improve)

    response = client.post("/v1/recommendations/tags", headers=AUTH, json={"artist": " Portishead "})

    assert response.status_code == 200
    assert response.json() == {"uris": ["spotify:track:P"]}


def test_search_passes_through_catalog_results(client):
    response = client.get("/v1/search", params={"q": "eminem"}, headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["tracks"]["items"] == [{"name": "eminem"}]
    assert body["types"] == ["track", "artist"]
    assert body["limit"] == 10


def test_search_requires_query(client):
    assert client.get("/v1/search", headers=AUTH).status_code == 422


def test_search_upstream_failure(client, spotify_stub):
    spotify_stub.search_error = RemoteError(500, "boom", service="spotify")

    assert client.get("/v1/search", params={"q": "eminem"}, headers=AUTH).status_code == 502


def test_create_playlist_saves_uris(client, spotify_stub):
    response = client.post(
        "/v1/playlists",
        headers=AUTH,
        json={"name": " Late Night ", "uris": ["spotify:track:X", "spotify:track:Y", "spotify:track:X"]},
    )

    assert response.status_code == 201
    assert response.json() == {"id": "pl-1", "url": "https://open.spotify.com/playlist/pl-1", "added": 2}
    assert spotify_stub.created == [{"user_id": "user-1", "name": "Late Night", "description": "", "public": False}]
    assert spotify_stub.added == [("pl-1", ["spotify:track:X", "spotify:track:Y"])]


def test_create_playlist_rejects_non_track_uris(client):
    response = client.post("/v1/playlists", headers=AUTH, json={"name": "Mix", "uris": ["spotify:album:abc"]})
    assert response.status_code == 422


def test_unconfigured_service_token_warns_once(client, caplog):
    app.state.service_token_warning = False

    with caplog.at_level(logging.WARNING, logger="seedmix.security"):
        client.get("/v1/search", params={"q": "eminem"}, headers=AUTH)
        client.get("/v1/search", params={"q": "dre"}, headers=AUTH)

    warnings = [record for record in caplog.records if record.name == "seedmix.security"]
    assert len(warnings) == 1
    assert "service token check disabled" in warnings[0].getMessage()

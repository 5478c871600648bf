from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import httpx
import pytest

from seedmix.core.config import ConfigurationMissing
from seedmix.lastfm.client import LastFmClient


def _call(payload: Any, method_name: str, *args: str) -> tuple[List[Dict[str, Any]], List[httpx.Request]]:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=payload)

    async def _go() -> List[Dict[str, Any]]:
        client = LastFmClient(api_key="lfm-key", transport=httpx.MockTransport(handler))
        try:
            return await getattr(client, method_name)(*args)
        finally:
            await client.close()

    return asyncio.run(_go()), seen


def test_similar_tracks_sends_expected_query() -> None:
    payload = {"similartracks": {"track": [{"name": "In Da Club", "artist": {"name": "50 Cent"}}]}}

    items, seen = _call(payload, "similar_tracks", "Eminem", "Lose Yourself")

    assert items == [{"name": "In Da Club", "artist": {"name": "50 Cent"}}]
    params = seen[0].url.params
    assert params["method"] == "track.getsimilar"
    assert params["artist"] == "Eminem"
    assert params["track"] == "Lose Yourself"
    assert params["api_key"] == "lfm-key"
    assert params["format"] == "json"


def test_single_result_object_is_wrapped() -> None:
    payload = {"similarartists": {"artist": {"name": "Dr. Dre"}}}

    items, _ = _call(payload, "similar_artists", "Eminem")

    assert items == [{"name": "Dr. Dre"}]


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"error": 6, "message": "Artist not found"},
        {"toptags": "nope"},
        {"toptags": {"tag": "rap"}},
        {"toptags": {"tag": ["rap", None]}},
    ],
)
def test_malformed_payload_degrades_to_empty(payload) -> None:
    items, _ = _call(payload, "artist_top_tags", "Eminem")

    assert items == []


def test_missing_api_key_fails_before_any_request() -> None:
    with pytest.raises(ConfigurationMissing):
        LastFmClient(api_key="")

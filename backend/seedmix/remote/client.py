from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict

import httpx

DEFAULT_RETRY_AFTER = 1.0

logger = logging.getLogger("seedmix.remote")


class RemoteError(Exception):
    def __init__(self, status: int | None, body: str = "", *, service: str = "remote") -> None:
        self.status = status
        self.body = body
        self.service = service
        super().__init__(f"{service} api error {status}: {body}")


class RemoteAuthError(RemoteError):
    pass


class RateLimitExhausted(RemoteError):
    pass


class RemoteTransportError(RemoteError):
    pass


def parse_retry_after(value: str | None) -> float:
    if not value:
        return DEFAULT_RETRY_AFTER
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER
    return max(seconds, 0.0)


@dataclass(slots=True)
class RemoteClient:
    """JSON-over-HTTP client shared by every upstream call.

    A 429 is retried after ``Retry-After + 1`` seconds, at most ``max_attempts``
    requests in total. A 204 (or an empty body) yields ``None``. Every other
    non-2xx response raises :class:`RemoteError` without retrying.
    """

    base_url: str
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: float = 15.0
    max_attempts: int = 5
    service: str = "remote"
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    transport: httpx.AsyncBaseTransport | None = None
    _client: httpx.AsyncClient | None = field(init=False, repr=False, default=None)

    def __post_init__(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> Dict[str, Any] | None:
        client = self._client
        if client is None:
            raise RemoteError(None, "client closed", service=self.service)

        attempts = max(1, self.max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                response = await client.request(method, url, params=params, json=json)
            except httpx.RequestError as exc:
                logger.error("%s %s %s transport failure: %s", self.service, method, url, exc)
                raise RemoteTransportError(None, str(exc), service=self.service) from exc

            if response.status_code == 429:
                retry_after = parse_retry_after(response.headers.get("Retry-After"))
                if attempt == attempts:
                    logger.error(
                        "%s %s %s still rate limited after %s attempts", self.service, method, url, attempts
                    )
                    raise RateLimitExhausted(429, response.text[:500], service=self.service)
                logger.warning(
                    "%s rate limited, retrying after %s seconds (attempt %s/%s)",
                    self.service,
                    retry_after,
                    attempt,
                    attempts,
                )
                await self.sleep(retry_after + 1)
                continue

            if response.status_code == 204:
                return None

            if response.status_code == 401:
                logger.error("%s %s %s -> 401", self.service, method, url)
                raise RemoteAuthError(401, response.text[:500], service=self.service)

            if response.status_code >= 400:
                detail = response.text[:500]
                logger.error("%s %s %s -> %s %s", self.service, method, url, response.status_code, detail)
                raise RemoteError(response.status_code, detail, service=self.service)

            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                logger.error("%s %s %s returned a non-JSON body", self.service, method, url)
                raise RemoteError(response.status_code, "invalid json body", service=self.service) from exc

        raise RateLimitExhausted(429, "max attempts exceeded", service=self.service)

from __future__ import annotations

import hashlib
import logging
import secrets

from fastapi import Depends, HTTPException, Request, status

from .config import Settings, get_settings

logger = logging.getLogger("seedmix.security")


def verify_service_token(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    expected = settings.service_token
    if not expected:
        # No token configured: local development, allow all traffic.
        if not getattr(request.app.state, "service_token_warning", False):
            logger.warning("BACKEND_SERVICE_TOKEN is not set; service token check disabled")
            request.app.state.service_token_warning = True  # type: ignore[attr-defined]
        return

    provided = request.headers.get("X-Service-Token", "")
    if not provided or not secrets.compare_digest(provided, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid service token")


def extract_spotify_access_token(request: Request) -> str:
    auth = request.headers.get("Authorization", "")
    prefix = "Bearer "
    if auth.startswith(prefix):
        token = auth[len(prefix):].strip()
        if token:
            return token
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")


def token_fingerprint(token: str) -> str:
    """Stable, non-reversible identifier for a bearer token (cache keys, logs)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:32]

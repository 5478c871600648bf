from __future__ import annotations

import asyncio

from fastapi import HTTPException, status

from ..core.config import ConfigurationMissing
from ..remote.client import RemoteAuthError, RemoteError


def to_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, RemoteAuthError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if isinstance(exc, ConfigurationMissing):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    if isinstance(exc, asyncio.TimeoutError):
        return HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="upstream services timed out")
    if isinstance(exc, RemoteError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="upstream failure")

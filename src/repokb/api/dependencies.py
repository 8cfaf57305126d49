"""
Shared FastAPI dependencies (authentication, telemetry).
"""

from __future__ import annotations

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..settings import settings

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def require_api_key(api_key: str = Security(_api_key_header)) -> str | None:
    """
    Enforce optional API-key authentication.

    When ``REPOKB_API_KEY`` is configured the request must carry the same value
    in ``X-API-Key``; otherwise every request is accepted.
    """
    expected = settings.api_key
    if not expected:
        return None
    if api_key != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key.",
        )
    return api_key


def telemetry_enabled() -> bool:
    return settings.telemetry_enabled

from __future__ import annotations

from typing import Any, TypedDict

from fastapi import HTTPException, Request, status
from jose import JWTError

from app.core.config import get_settings
from .jwks_cache import JWKSCache

ACCESS_COOKIE_NAME = "access_token"

JWKS = JWKSCache(get_settings().jwks_url, ttl_seconds=3600)


class Claims(TypedDict, total=False):
    sub: str
    email: str
    role: str
    user_metadata: dict[str, Any]
    app_metadata: dict[str, Any]


def _extract_bearer_or_cookie(request: Request) -> str | None:
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.removeprefix("Bearer ").strip()
    return request.cookies.get(ACCESS_COOKIE_NAME)


async def get_current_claims(request: Request) -> Claims:
    token = _extract_bearer_or_cookie(request)
    if not token:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    try:
        claims = await JWKS.verify(token)
    except JWTError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    except Exception as e:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, f"Token verification failed: {e}")
    return claims  # type: ignore[return-value]

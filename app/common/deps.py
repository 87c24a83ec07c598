"""Shared FastAPI dependencies for authentication and authorization."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel

from app.auth.deps import Claims, get_current_claims


logger = logging.getLogger("auth.deps")


class CurrentUser(BaseModel):
    """Minimal user identity shared across endpoints."""
    id: str
    email: Optional[str] = None
    role: str = "student"
    school_id: Optional[str] = None
    student_id: Optional[str] = None


@lru_cache()
def _known_roles() -> frozenset[str]:
    return frozenset({"school_admin", "teacher", "student"})


def user_from_claims(claims: Claims) -> CurrentUser:
    user_meta = claims.get("user_metadata") or {}
    app_meta = claims.get("app_metadata") or {}
    role = user_meta.get("role") or app_meta.get("role") or "student"
    if role not in _known_roles():
        role = "student"
    return CurrentUser(
        id=str(claims.get("sub")),
        email=claims.get("email") or user_meta.get("email"),
        role=role,
        school_id=user_meta.get("school_id") or app_meta.get("school_id"),
        student_id=user_meta.get("student_id"),
    )


async def get_current_user(request: Request, claims: Claims = Depends(get_current_claims)) -> CurrentUser:
    """Resolve the verified token claims into a typed ``CurrentUser``."""
    if not claims.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token: missing subject")
    current = user_from_claims(claims)
    request_id = getattr(request.state, "request_id", None)
    logger.info(
        "auth_resolved user_id=%s role=%s request_id=%s path=%s",
        current.id,
        current.role,
        request_id,
        request.url.path,
    )
    return current


STAFF_ROLES = ("teacher", "school_admin")


def ensure_roles(user: CurrentUser, *allowed: str) -> CurrentUser:
    """Raise 403 unless ``user`` holds one of the ``allowed`` roles."""
    if user.role not in allowed:
        logger.info("auth_forbidden user_id=%s role=%s allowed=%s", user.id, user.role, ",".join(allowed))
        raise HTTPException(
            status.HTTP_403_FORBIDDEN,
            {"error_code": "E_FORBIDDEN", "message": "Insufficient permissions"},
        )
    return user


__all__ = ["CurrentUser", "STAFF_ROLES", "ensure_roles", "get_current_user", "user_from_claims"]

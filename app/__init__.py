"""EcoQuest backend package.

The FastAPI application is exposed as ``app`` lazily so that the pure
progress/achievement/leaderboard modules can be imported without building
the HTTP app or reading auth settings."""

from __future__ import annotations

__all__ = ["app"]


def __getattr__(name: str):
    if name == "app":
        from .main import app as fastapi_app
        return fastapi_app
    raise AttributeError(f"module {__name__} has no attribute {name!r}")

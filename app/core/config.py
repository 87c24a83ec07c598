from __future__ import annotations

import os
from functools import lru_cache
from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(".env") or ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Settings:
    """Central configuration (env driven)."""

    def __init__(self) -> None:
        # Supabase
        raw_url = os.getenv("SUPABASE_URL", "")
        self.supabase_url: str = raw_url.rstrip("/")
        self.supabase_anon_key: str = os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY", "")
        self.supabase_key: str = self.supabase_anon_key  # alias
        self.supabase_service_role_key: str = (
            os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            or os.getenv("SUPABASE_SERVICE_KEY")
            or ""
        )
        self.supabase_jwt_secret: str = os.getenv("SUPABASE_JWT_SECRET", "")
        # App meta
        self.app_name: str = "EcoQuest Backend"
        self.app_version: str = os.getenv("APP_VERSION", "dev")
        self.debug: bool = _env_bool("DEBUG", "False")
        # Progress & ranking
        self.streak_window_days: int = _env_int("STREAK_WINDOW_DAYS", 30)
        self.perfect_score_threshold: int = _env_int("PERFECT_SCORE_THRESHOLD", 95)
        # Incomplete submissions have always counted towards points
        self.points_include_incomplete: bool = _env_bool("POINTS_INCLUDE_INCOMPLETE", "true")
        self.leaderboard_default_limit: int = _env_int("LEADERBOARD_DEFAULT_LIMIT", 50)

    @property
    def jwks_url(self) -> str:
        return f"{self.supabase_url}/auth/v1/certs" if self.supabase_url else ""

    @property
    def client_key(self) -> str:
        """Key used for server-side table access; service role wins when configured."""
        return self.supabase_service_role_key or self.supabase_anon_key


@lru_cache()
def get_settings() -> Settings:
    return Settings()

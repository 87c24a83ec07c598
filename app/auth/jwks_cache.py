"""Supabase Auth token verification with a TTL-cached signing key set."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import httpx
from jose import jwt

from app.core.config import get_settings

SUPABASE_AUDIENCE = "authenticated"


class JWKSCache:
    def __init__(self, jwks_url: str, ttl_seconds: int = 3600):
        self.jwks_url = jwks_url
        self.ttl = ttl_seconds
        self._jwks: Optional[Dict[str, Any]] = None
        self._fetched_at = 0.0

    def _candidate_urls(self) -> List[str]:
        # Supabase deployments expose the key set under different paths
        urls = [self.jwks_url]
        if self.jwks_url.endswith("/certs"):
            base = self.jwks_url[: -len("certs")]
            urls.extend([base + "jwks", base + ".well-known/jwks.json"])
        return urls

    async def _fetch(self) -> Dict[str, Any]:
        settings = get_settings()
        headers: Dict[str, str] = {}
        if settings.supabase_anon_key:
            headers = {
                "apikey": settings.supabase_anon_key,
                "Authorization": f"Bearer {settings.supabase_anon_key}",
            }
        timeout = httpx.Timeout(connect=3, read=5, write=5, pool=5)
        last_exc: Optional[Exception] = None
        async with httpx.AsyncClient(timeout=timeout) as client:
            for url in self._candidate_urls():
                try:
                    resp = await client.get(url, headers=headers)
                    if resp.status_code == 404:
                        continue
                    resp.raise_for_status()
                except httpx.HTTPError as exc:
                    last_exc = exc
                    continue
                self.jwks_url = url
                return resp.json()
        if last_exc is not None:
            raise last_exc
        raise RuntimeError(f"Failed to fetch JWKS. Tried: {self._candidate_urls()}")

    async def get(self) -> Dict[str, Any]:
        now = time.time()
        if self._jwks is None or (now - self._fetched_at) > self.ttl:
            self._jwks = await self._fetch()
            self._fetched_at = now
        return self._jwks

    def _find_key(self, jwks: Dict[str, Any], kid: Optional[str]) -> Optional[Dict[str, Any]]:
        if not kid:
            return None
        return next((k for k in jwks.get("keys", []) if k.get("kid") == kid), None)

    async def verify(self, token: str, audience: Optional[str] = SUPABASE_AUDIENCE) -> Dict[str, Any]:
        header = jwt.get_unverified_header(token)
        alg = header.get("alg", "")
        options = {"verify_aud": audience is not None}
        # Projects on the legacy shared secret sign with HS256
        if alg.startswith("HS"):
            secret = get_settings().supabase_jwt_secret
            if not secret:
                raise ValueError("HS token but SUPABASE_JWT_SECRET not configured")
            return jwt.decode(token, secret, algorithms=[alg], audience=audience, options=options)

        kid = header.get("kid")
        key = self._find_key(await self.get(), kid)
        if key is None:
            # Keys may have rotated since the last fetch
            self._jwks = None
            key = self._find_key(await self.get(), kid)
        if key is None:
            raise ValueError(f"Signing key not found (alg={alg}, kid={kid})")
        return jwt.decode(token, key, algorithms=[key.get("alg", alg)], audience=audience, options=options)


__all__ = ["JWKSCache", "SUPABASE_AUDIENCE"]

"""JSON Web Key Set fetching with a time-bounded in-process cache."""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

from family_cloud.utils.tokens import TokenValidationError

logger = logging.getLogger(__name__)


class JwksFetchError(Exception):
    """The key set was fetched but its body is not a usable JWKS document."""


class JwksCache:
    """Public signing keys of an identity provider, keyed by ``kid``.

    Keys are refetched when the cache is older than ``ttl_seconds``, or when a
    token names an unknown ``kid`` (the provider rotated its keys) and the last
    fetch is older than ``MIN_REFETCH_INTERVAL``.
    """

    FETCH_TIMEOUT = 5.0  # seconds
    MIN_REFETCH_INTERVAL = 60  # seconds

    def __init__(self, url: str, ttl_seconds: int = 3600):
        self._url = url
        self._ttl = ttl_seconds
        self._keys: dict[str, dict] = {}
        self._fetched_at: float | None = None
        self._lock = asyncio.Lock()

    def _needs_fetch(self, kid: str) -> bool:
        if self._fetched_at is None:
            return True
        age = time.monotonic() - self._fetched_at
        if age > self._ttl:
            return True
        return kid not in self._keys and age > self.MIN_REFETCH_INTERVAL

    async def _fetch(self) -> None:
        async with httpx.AsyncClient(timeout=self.FETCH_TIMEOUT) as client:
            resp = await client.get(self._url)
            resp.raise_for_status()
            try:
                data = resp.json()
            except ValueError as exc:
                raise JwksFetchError(f"Key set at {self._url} is not JSON") from exc
        keys = data.get("keys") if isinstance(data, dict) else None
        if not isinstance(keys, list):
            raise JwksFetchError(f"Key set at {self._url} has no \"keys\" list")
        self._keys = {key["kid"]: key for key in keys if isinstance(key, dict) and "kid" in key}
        self._fetched_at = time.monotonic()
        logger.info("Fetched %d signing key(s) from %s", len(self._keys), self._url)

    async def get_key(self, kid: str) -> dict:
        """Return the JWK for ``kid``.

        Raises httpx.HTTPError if the provider is down and JwksFetchError if it
        serves something other than a key set.
        """
        if self._needs_fetch(kid):
            async with self._lock:
                # Another request may have refreshed while we waited
                if self._needs_fetch(kid):
                    await self._fetch()
        key = self._keys.get(kid)
        if key is None:
            raise TokenValidationError(f"Unknown signing key: {kid}")
        return key

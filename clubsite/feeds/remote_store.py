"""
feeds/remote_store.py — Remote key/value document store client

The remote store holds one JSON document per key, grouped into named
stores ("site-data" for feeds, "social-cache" for the social feed).
It is addressed over HTTP:

  GET {base_url}/{store}/{key}   → 200 JSON | 404 missing
  PUT {base_url}/{store}/{key}   ← JSON body, overwrite

Reads never raise: they return a Lookup (found / absent / error).
Writes raise UpstreamError so the caller decides how to report them.
An unconfigured base URL means "no remote binding": every read is
absent and every write fails.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from clubsite.errors import UpstreamError

from .models import Lookup

log = logging.getLogger("clubsite.store")

DEFAULT_TIMEOUT = 10.0


class RemoteStore:
    """
    Async HTTP client for the remote document store.

    Usage:
        store = RemoteStore("https://blobs.example.com", token="...")
        lookup = await store.get_json("site-data", "board.json")
    """

    def __init__(
        self,
        base_url: str = "",
        token: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=self.base_url or "http://unbound.invalid",
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    @property
    def bound(self) -> bool:
        return bool(self.base_url)

    async def close(self):
        await self._client.aclose()

    async def is_healthy(self) -> bool:
        if not self.bound:
            return False
        try:
            resp = await self._client.get("/")
            return resp.status_code < 500
        except httpx.HTTPError:
            return False

    async def get_json(self, store: str, key: str) -> Lookup:
        if not self.bound:
            return Lookup.absent()

        path = f"/{store}/{key}"
        try:
            resp = await self._client.get(path)
        except httpx.TimeoutException:
            log.error(f"Remote store timed out reading {path}")
            return Lookup.failed("timeout")
        except httpx.HTTPError as e:
            log.error(f"Remote store unreachable reading {path}: {e}")
            return Lookup.failed(str(e))

        if resp.status_code == 404:
            return Lookup.absent()
        if resp.status_code != 200:
            log.error(f"Remote store returned {resp.status_code} for {path}")
            return Lookup.failed(f"HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError:
            log.error(f"Remote store returned malformed JSON for {path}")
            return Lookup.failed("malformed JSON")

        return Lookup.found(data) if data is not None else Lookup.absent()

    async def put_json(self, store: str, key: str, document: Any) -> None:
        if not self.bound:
            raise UpstreamError("remote store not configured")

        path = f"/{store}/{key}"
        try:
            resp = await self._client.put(path, json=document)
        except httpx.HTTPError as e:
            log.error(f"Remote store write to {path} failed: {e}")
            raise UpstreamError(f"remote store unreachable: {e}") from e

        if resp.status_code not in (200, 201, 204):
            log.error(f"Remote store write to {path} returned {resp.status_code}")
            raise UpstreamError(f"remote store write failed (HTTP {resp.status_code})")

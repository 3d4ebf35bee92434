"""
Data Source Resolver — named feeds across remote store and bundled files

Read chain (first success wins):
  1. remote store   site-data/<name>.json
  2. bundled file   <data_dir>/<name>.json
  3. not found      resolve() returns None

The name is validated before any store is touched, so an unknown name is
rejected the same way whether or not the stores are reachable. Remote
failures are logged and treated as "no data".

Writes are gated by the admin token (checked before the name) and
overwrite the remote document unconditionally.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from clubsite.errors import UpstreamError
from clubsite.middleware.auth import AdminGuard

from .models import SITE_DATA_STORE, FeedName, Lookup, Outcome, parse_feed_name
from .remote_store import RemoteStore

log = logging.getLogger("clubsite.feeds")


@dataclass(frozen=True)
class ResolvedFeed:
    name: FeedName
    document: Any
    tier: str  # "remote" | "local"


class DataSourceResolver:
    def __init__(self, remote: RemoteStore, data_dir: str | Path, guard: AdminGuard):
        self.remote = remote
        self.data_dir = Path(data_dir)
        self.guard = guard

    async def resolve(self, name: FeedName | str) -> ResolvedFeed | None:
        feed = parse_feed_name(name)

        remote = await self.remote.get_json(SITE_DATA_STORE, feed.key)
        if remote.outcome == Outcome.ERROR:
            log.warning(f"Remote read for {feed.value} failed ({remote.error}); trying bundled file")
        if remote.ok:
            return ResolvedFeed(name=feed, document=remote.value, tier="remote")

        local = self.read_local(feed)
        if local.outcome == Outcome.ERROR:
            log.error(f"Bundled file for {feed.value} unreadable: {local.error}")
        if local.ok:
            return ResolvedFeed(name=feed, document=local.value, tier="local")

        log.info(f"No data for feed {feed.value} at any tier")
        return None

    async def store(self, name: FeedName | str, document: Any, token: str | None) -> bool:
        """Overwrite the remote document. Returns False on store failure."""
        self.guard.verify(token)
        feed = parse_feed_name(name)

        try:
            await self.remote.put_json(SITE_DATA_STORE, feed.key, document)
        except UpstreamError as e:
            log.error(f"data write for {feed.value} failed: {e}")
            return False

        log.info(f"Stored feed {feed.value} in remote store")
        return True

    def read_local(self, feed: FeedName) -> Lookup:
        path = self.data_dir / feed.key
        if not path.exists():
            return Lookup.absent()
        try:
            with open(path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            return Lookup.failed(str(e))
        return Lookup.found(doc) if doc is not None else Lookup.absent()

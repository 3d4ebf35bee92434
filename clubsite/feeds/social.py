"""
feeds/social.py — Social feed fetch-and-cache cycle

Pulls the latest hashtag posts from the Instagram Graph API and caches
them in the remote store as the dynamic half of the projects feed.

Refresh flow:
  1. GET /ig_hashtag_search         → hashtag id
  2. GET /{hashtag_id}/recent_media → posts (configured limit)
  3. map each post to a FeedItem (title, summary, images, permalink,
     timestamp, tags, source="instagram")
  4. PUT social-cache/ig_projects.json = {updatedAt, items}

The upstream is opaque: any failure ends the cycle with ok=false and a
message, never an exception. Reading the cache falls back to the empty
shape {updatedAt: null, items: []}.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

import httpx
from pydantic import ValidationError

from clubsite.config import Settings
from clubsite.errors import UpstreamError
from clubsite.models import RefreshSummary

from .models import SOCIAL_CACHE_KEY, SOCIAL_CACHE_STORE, FeedItem, SocialCache
from .remote_store import RemoteStore

log = logging.getLogger("clubsite.social")

GRAPH_API_URL = "https://graph.facebook.com/v19.0"
MEDIA_FIELDS = "id,caption,media_type,media_url,permalink,timestamp,children{media_type,media_url}"
TITLE_MAX_CHARS = 120
SUMMARY_MAX_CHARS = 300


def map_post(post: Mapping[str, Any], hashtag: str) -> FeedItem:
    images = []
    if post.get("media_url"):
        images.append(post["media_url"])
    children = post.get("children")
    if isinstance(children, Mapping) and isinstance(children.get("data"), list):
        images.extend(c["media_url"] for c in children["data"] if isinstance(c, Mapping) and c.get("media_url"))

    caption = (post.get("caption") or "").strip()
    title = caption.split("\n")[0][:TITLE_MAX_CHARS] or "Instagram Post"

    return FeedItem(
        title=title,
        summary=caption[:SUMMARY_MAX_CHARS],
        image=images[0] if images else None,
        images=images,
        permalink=post.get("permalink"),
        timestamp=post.get("timestamp"),
        tags=["Instagram", f"#{hashtag}"],
        source="instagram",
    )


class SocialFeedFetcher:
    def __init__(
        self,
        settings: Settings,
        store: RemoteStore,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.store = store
        self._client = httpx.AsyncClient(
            base_url=GRAPH_API_URL,
            timeout=settings.http_timeout,
            transport=transport,
        )

    async def close(self):
        await self._client.aclose()

    # ── Public API ──────────────────────────────────────────────

    async def refresh(self) -> RefreshSummary:
        if not self.settings.social_enabled:
            log.error("Missing IG_ACCESS_TOKEN or IG_USER_ID")
            return RefreshSummary(ok=False, message="Missing Instagram credentials; skipping.")

        hashtag = self.settings.ig_hashtag
        try:
            hashtag_id = await self._find_hashtag(hashtag)
            if not hashtag_id:
                log.warning(f"Hashtag not found: {hashtag}")
                return RefreshSummary(ok=False, message="Hashtag not found.")

            posts = await self._recent_media(hashtag_id)
            items = [map_post(p, hashtag).model_dump(exclude_none=True) for p in posts if isinstance(p, Mapping)]

            cache = SocialCache(updatedAt=datetime.now(timezone.utc).isoformat(), items=items)
            await self.store.put_json(SOCIAL_CACHE_STORE, SOCIAL_CACHE_KEY, cache.model_dump())
        except UpstreamError as e:
            log.error(f"Social refresh failed: {e}")
            return RefreshSummary(ok=False, message="Error during fetch (logged).")
        except Exception as e:
            log.error(f"Unexpected social refresh error: {e}")
            return RefreshSummary(ok=False, message="Error during fetch (logged).")

        log.info(f"Cached {len(items)} Instagram posts for #{hashtag}")
        return RefreshSummary(ok=True, count=len(items), message=f"Cached {len(items)} Instagram posts for #{hashtag}.")

    async def read_cache(self) -> SocialCache:
        lookup = await self.store.get_json(SOCIAL_CACHE_STORE, SOCIAL_CACHE_KEY)
        if not lookup.ok:
            if lookup.error:
                log.warning(f"Social cache read failed: {lookup.error}")
            return SocialCache()
        try:
            return SocialCache.model_validate(lookup.value)
        except ValidationError as e:
            log.error(f"Social cache document malformed: {e}")
            return SocialCache()

    # ── Internal Methods ────────────────────────────────────────

    async def _get(self, path: str, params: dict) -> dict:
        params = {**params, "access_token": self.settings.ig_access_token}
        try:
            resp = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise UpstreamError(f"social API unreachable: {e}") from e
        if resp.status_code != 200:
            raise UpstreamError(f"HTTP {resp.status_code} for {path}")
        try:
            body = resp.json()
        except ValueError as e:
            raise UpstreamError(f"malformed JSON from {path}") from e
        if not isinstance(body, dict):
            raise UpstreamError(f"unexpected payload from {path}")
        return body

    async def _find_hashtag(self, hashtag: str) -> str | None:
        body = await self._get("/ig_hashtag_search", {"user_id": self.settings.ig_user_id, "q": hashtag})
        data = body.get("data")
        if isinstance(data, list) and data and isinstance(data[0], Mapping):
            return data[0].get("id")
        return None

    async def _recent_media(self, hashtag_id: str) -> list:
        body = await self._get(
            f"/{hashtag_id}/recent_media",
            {"user_id": self.settings.ig_user_id, "fields": MEDIA_FIELDS, "limit": self.settings.ig_limit},
        )
        data = body.get("data")
        return data if isinstance(data, list) else []

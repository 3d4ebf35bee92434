"""
Feed Aggregator — dynamic items first, newest first, then the catalog

merge(dynamic, static):
  - dynamic items sorted by descending timestamp; a missing or
    unparseable timestamp counts as the epoch, so those items sink to
    the end of the dynamic group (ties keep their input order)
  - static items keep their given order
  - result = dynamic + static, no de-duplication, no length cap

Also provides the ordered views used by the /feeds endpoints.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from pydantic import BaseModel

from .models import FeedName, SocialCache

log = logging.getLogger("clubsite.feeds")

EPOCH = 0.0
_MONTH_ONLY = re.compile(r"^\d{4}-\d{2}$")
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")
_MONTH_NAME_FORMATS = ("%B %Y", "%b %Y", "%d %B %Y")


def parse_timestamp(value: Any) -> float:
    """POSIX seconds for an ISO-8601-ish string; EPOCH when it cannot be read."""
    if not isinstance(value, str) or not value.strip():
        return EPOCH

    text = value.strip()
    if _MONTH_ONLY.match(text):
        text += "-01"
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _COMPACT_OFFSET.sub(r"\1:\2", text) if "T" in text else text

    parsed = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in _MONTH_NAME_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _as_item(item: Any) -> Any:
    if isinstance(item, BaseModel):
        return item.model_dump(exclude_none=True)
    return item


def _stamp(item: Any) -> float:
    if not isinstance(item, Mapping):
        return EPOCH
    return parse_timestamp(item.get("timestamp") or item.get("date"))


def merge(dynamic: Iterable[Any] | None, static: Iterable[Any] | None) -> list:
    dynamic_items = [_as_item(i) for i in (dynamic or [])]
    static_items = [_as_item(i) for i in (static or [])]
    dynamic_items.sort(key=_stamp, reverse=True)
    return dynamic_items + static_items


def order_newsletters(issues: Iterable[Any] | None) -> list:
    """Newest issue first, by each issue's date."""
    ordered = [_as_item(i) for i in (issues or [])]
    ordered.sort(key=_stamp, reverse=True)
    return ordered


def _list_at(document: Any, key: str) -> list:
    if isinstance(document, Mapping) and isinstance(document.get(key), list):
        return document[key]
    return []


def projects_view(cache: SocialCache | None, static_doc: Any) -> dict:
    dynamic = cache.items if cache else []
    return {
        "updatedAt": cache.updatedAt if cache else None,
        "projects": merge(dynamic, _list_at(static_doc, "projects")),
    }


def feed_view(name: FeedName, document: Any, cache: SocialCache | None = None) -> Any:
    """Server-side ordering for a resolved feed document."""
    if name == FeedName.PROJECTS:
        return projects_view(cache, document)
    if name == FeedName.NEWSLETTERS and isinstance(document, Mapping):
        return {**document, "issues": order_newsletters(_list_at(document, "issues"))}
    return document

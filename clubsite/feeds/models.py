"""
Feed Models — names, items, and store lookup outcomes

FeedName is a closed set. Anything outside it is an invalid request,
never a feed. Store reads return a Lookup whose Outcome separates
"nothing there" (absent) from "the read failed" (error), so callers can
log failures without treating expected absence as one.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from clubsite.errors import InvalidRequest

SITE_DATA_STORE = "site-data"
SOCIAL_CACHE_STORE = "social-cache"
SOCIAL_CACHE_KEY = "ig_projects.json"


class FeedName(str, Enum):
    BOARD = "board"
    DIRECTORS = "directors"
    NEWSLETTERS = "newsletters"
    PROJECTS = "projects"
    PAST_PRESIDENTS = "past-presidents"

    @property
    def key(self) -> str:
        return f"{self.value}.json"


def parse_feed_name(raw: Any) -> FeedName:
    """Strip characters outside [a-z-] and look the result up."""
    if isinstance(raw, FeedName):
        return raw
    cleaned = re.sub(r"[^a-z\-]", "", raw if isinstance(raw, str) else "")
    try:
        return FeedName(cleaned)
    except ValueError:
        raise InvalidRequest("Invalid name") from None


class Outcome(str, Enum):
    FOUND = "found"
    ABSENT = "absent"
    ERROR = "error"


@dataclass(frozen=True)
class Lookup:
    outcome: Outcome
    value: Any = None
    error: str = ""

    @classmethod
    def found(cls, value: Any) -> Lookup:
        return cls(Outcome.FOUND, value=value)

    @classmethod
    def absent(cls) -> Lookup:
        return cls(Outcome.ABSENT)

    @classmethod
    def failed(cls, error: str) -> Lookup:
        return cls(Outcome.ERROR, error=error)

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.FOUND


class FeedItem(BaseModel):
    """One entry of a feed. Unknown keys from the source document are kept."""
    model_config = ConfigDict(extra="allow")

    title: str = ""
    summary: Optional[str] = None
    image: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    permalink: Optional[str] = None
    timestamp: Optional[str] = None
    date: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    source: Optional[str] = None


class SocialCache(BaseModel):
    updatedAt: Optional[str] = None
    items: list[dict] = Field(default_factory=list)

"""
Knowledge Store — loads and deep-merges knowledge documents

Documents are plain JSON files. They are merged left to right with a
right-biased deep merge:

  list + list  → concatenation (order kept, no de-duplication)
  dict + dict  → key union, recursing on shared keys
  otherwise    → the right value, unless it is undefined (None)

A missing, unreadable, or malformed document is logged and skipped.
Relative paths resolve under the configured base directory; paths that
escape it are refused.

Merged snapshots can be cached process-wide. The cache is keyed by each
file's path and mtime and is only ever replaced as a whole mapping, so
concurrent readers never see a partially updated entry. Callers must
treat the returned document as read-only.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

logger = logging.getLogger("clubsite.knowledge")

MAX_CACHED_SNAPSHOTS = 32


def deep_merge(a: Any, b: Any) -> Any:
    """Merge b onto a without mutating either."""
    if isinstance(a, list) and isinstance(b, list):
        return a + b
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        out = dict(a)
        for key, value in b.items():
            out[key] = deep_merge(a[key], value) if key in a else value
        return out
    return a if b is None else b


class KnowledgeStore:
    """Resolves, reads, and merges knowledge documents."""

    def __init__(self, base_dir: str | Path, cache: bool = True):
        self.base_dir = Path(base_dir).resolve()
        self.cache_enabled = cache
        self._snapshots: dict[tuple, dict] = {}

    # ── Public API ──────────────────────────────────────────────

    def load(self, paths: Iterable[str]) -> dict:
        """Return the merged document for the given ordered paths."""
        resolved = [p for p in (self._resolve(raw) for raw in paths) if p is not None]

        key = self._cache_key(resolved) if self.cache_enabled else None
        if key is not None:
            cached = self._snapshots.get(key)
            if cached is not None:
                return cached

        merged: dict = {}
        for path in resolved:
            doc = self._read(path)
            if doc is not None:
                merged = deep_merge(merged, doc)

        if key is not None:
            snapshots = {} if len(self._snapshots) >= MAX_CACHED_SNAPSHOTS else dict(self._snapshots)
            snapshots[key] = merged
            self._snapshots = snapshots

        return merged

    def clear_cache(self) -> None:
        self._snapshots = {}

    # ── Internal Methods ────────────────────────────────────────

    def _resolve(self, raw: str) -> Path | None:
        path = Path(raw)
        if not path.is_absolute():
            path = self.base_dir / path
        path = path.resolve()
        if not path.is_relative_to(self.base_dir):
            logger.warning(f"Refusing knowledge path outside {self.base_dir}: {raw}")
            return None
        return path

    def _cache_key(self, paths: list[Path]) -> tuple | None:
        parts = []
        for path in paths:
            try:
                parts.append((str(path), path.stat().st_mtime_ns))
            except OSError:
                parts.append((str(path), None))
        return tuple(parts)

    def _read(self, path: Path) -> Any:
        if not path.exists():
            logger.warning(f"Knowledge document not found: {path}")
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Context read error for {path}: {e}")
            return None
        if not isinstance(doc, Mapping):
            logger.warning(f"Knowledge document {path} is not an object; skipped")
            return None
        return doc

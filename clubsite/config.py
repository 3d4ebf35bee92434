"""
config.py — Environment-derived configuration

All secrets, model names, and upstream limits are read once into a
frozen Settings object and handed to each component at construction.
Nothing downstream reads os.environ directly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_MODEL = "claude-sonnet-4-5-20250514"
DEFAULT_HASHTAG = "LCACProjects"
DEFAULT_IG_LIMIT = 15
DEFAULT_MIN_LOCAL_CHARS = 50
DEFAULT_HTTP_TIMEOUT = 10.0


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    admin_token: str = ""

    # Generative backend
    anthropic_api_key: str = ""
    model: str = DEFAULT_MODEL

    # Knowledge + bundled feed files
    data_dir: Path = PROJECT_ROOT / "data"
    knowledge_base_dir: Path = PROJECT_ROOT
    default_knowledge: tuple[str, ...] = ("data/club-knowledge.json",)
    min_local_answer_chars: int = DEFAULT_MIN_LOCAL_CHARS

    # Remote key/value document store
    remote_store_url: str = ""
    remote_store_token: str = ""

    # Social upstream
    ig_access_token: str = ""
    ig_user_id: str = ""
    ig_hashtag: str = DEFAULT_HASHTAG
    ig_limit: int = DEFAULT_IG_LIMIT

    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    org_aliases: tuple[str, ...] = field(default_factory=tuple)

    @property
    def generative_enabled(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def social_enabled(self) -> bool:
        return bool(self.ig_access_token and self.ig_user_id)


def load_settings() -> Settings:
    """Capture the process environment into an immutable Settings."""
    knowledge = os.environ.get("CLUBSITE_KNOWLEDGE_FILE", "data/club-knowledge.json")
    aliases = os.environ.get("CLUBSITE_ORG_ALIASES", "")
    return Settings(
        admin_token=os.environ.get("ADMIN_TOKEN", ""),
        anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
        model=os.environ.get("CLUBSITE_MODEL", DEFAULT_MODEL),
        data_dir=Path(os.environ.get("CLUBSITE_DATA_DIR", PROJECT_ROOT / "data")),
        knowledge_base_dir=Path(os.environ.get("CLUBSITE_KNOWLEDGE_DIR", PROJECT_ROOT)),
        default_knowledge=tuple(p.strip() for p in knowledge.split(",") if p.strip()),
        min_local_answer_chars=_int_env("CLUBSITE_MIN_LOCAL_CHARS", DEFAULT_MIN_LOCAL_CHARS),
        remote_store_url=os.environ.get("REMOTE_STORE_URL", ""),
        remote_store_token=os.environ.get("REMOTE_STORE_TOKEN", ""),
        ig_access_token=os.environ.get("IG_ACCESS_TOKEN", ""),
        ig_user_id=os.environ.get("IG_USER_ID", ""),
        ig_hashtag=os.environ.get("IG_HASHTAG", DEFAULT_HASHTAG),
        ig_limit=_int_env("IG_LIMIT", DEFAULT_IG_LIMIT),
        http_timeout=_float_env("CLUBSITE_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        org_aliases=tuple(a.strip().lower() for a in aliases.split(",") if a.strip()),
    )

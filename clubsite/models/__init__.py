"""
models — API Request/Response Schemas

Pydantic models for the HTTP surface: chat, feed writes, social cache
refresh, and health.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


# ── Request Models ───────────────────────────────────────────────

class ChatRequest(BaseModel):
    question: str = ""
    contextFiles: Optional[list[str]] = None
    page: Optional[str] = None


# ── Response Models ──────────────────────────────────────────────

class ChatResponse(BaseModel):
    answer: str
    source: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


class WriteResult(BaseModel):
    ok: bool
    error: Optional[str] = None


class RefreshSummary(BaseModel):
    ok: bool
    count: int = 0
    message: str = ""


class HealthComponent(BaseModel):
    status: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "1.0.0"
    uptime_seconds: int = 0
    components: dict[str, HealthComponent] = Field(default_factory=dict)

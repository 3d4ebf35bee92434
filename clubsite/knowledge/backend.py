"""
knowledge/backend.py — Generative backend adapter

The router only needs "system + prompt in, text out". AnthropicBackend
implements that with the Anthropic Messages API; any failure (transport,
non-success status, empty or malformed content) is raised as
UpstreamError so the router can degrade to its local answer.
"""

from __future__ import annotations

import logging
import time
from typing import Protocol

import anthropic

from clubsite.errors import UpstreamError

log = logging.getLogger("clubsite.backend")

DEFAULT_MAX_TOKENS = 600


class GenerativeBackend(Protocol):
    def complete(self, system: str, prompt: str) -> str: ...


class AnthropicBackend:
    """
    Text completion through Claude.

    Usage:
        backend = AnthropicBackend(api_key="sk-ant-...", model="claude-...")
        text = backend.complete(system_prompt, user_prompt)
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = 30.0,
        client: anthropic.Anthropic | None = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self._client = client or anthropic.Anthropic(api_key=api_key, timeout=timeout)

    def complete(self, system: str, prompt: str) -> str:
        start = time.monotonic()
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            log.error(f"Claude API error: {e}")
            raise UpstreamError(f"generative backend error: {e}") from e

        try:
            text = "".join(
                block.text for block in response.content
                if getattr(block, "type", "") == "text"
            ).strip()
        except (AttributeError, TypeError) as e:
            raise UpstreamError("malformed completion payload") from e

        if not text:
            raise UpstreamError("empty completion")

        log.info(f"Completion from {self.model} in {int((time.monotonic() - start) * 1000)}ms")
        return text

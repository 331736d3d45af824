"""LLM client -- async wrapper around the OpenAI Responses API."""

from __future__ import annotations

import asyncio
import json
import logging
import random
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any

from .errors import LLMError

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4.1-mini"


@dataclass
class LLMClient:
    """Minimal async-friendly OpenAI client using stdlib only."""

    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = OPENAI_BASE_URL
    timeout: float = 120.0
    backoff_enabled: bool = True
    max_retries: int = 3
    base_backoff_seconds: float = 0.5
    max_concurrency: int = 4
    _sem: asyncio.Semaphore = field(init=False, repr=False)
    _stats_lock: asyncio.Lock = field(init=False, repr=False)
    _total_calls: int = field(default=0, init=False, repr=False)
    _retry_count: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        self._sem = asyncio.Semaphore(max(1, self.max_concurrency))
        self._stats_lock = asyncio.Lock()

    def _json_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    # ------------------------------------------------------------------
    # Core call methods
    # ------------------------------------------------------------------

    def _post_sync(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Blocking JSON POST. Meant to be run via asyncio.to_thread."""
        req = urllib.request.Request(
            f"{self.base_url.rstrip('/')}/{path.lstrip('/')}",
            data=json.dumps(payload).encode("utf-8"),
            headers=self._json_headers(),
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")
            raise LLMError(
                f"OpenAI API error ({exc.code}): {error_body}", status=exc.code
            ) from exc
        except (urllib.error.URLError, TimeoutError) as exc:
            raise LLMError(f"OpenAI request failed: {exc}") from exc

        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise LLMError(f"OpenAI returned non-JSON body: {body[:200]}") from exc
        if not isinstance(data, dict):
            raise LLMError("OpenAI returned an unexpected JSON body.")
        return data

    async def create_response(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a Responses API request with retry/backoff.

        ``model`` defaults to the client's model when the payload omits it.
        """
        body = {"model": self.model, **payload}
        async with self._sem:
            attempt = 0
            while True:
                try:
                    result = await asyncio.to_thread(self._post_sync, "responses", body)
                    async with self._stats_lock:
                        self._total_calls += 1
                    return result
                except LLMError as exc:
                    if (
                        not self.backoff_enabled
                        or not _is_retryable(exc)
                        or attempt >= self.max_retries
                    ):
                        raise
                    async with self._stats_lock:
                        self._retry_count += 1
                    wait_s = (self.base_backoff_seconds * (2 ** attempt)) + random.uniform(0, 0.1)
                    logger.warning(
                        "OpenAI call failed (%s); retrying in %.2fs.", exc, wait_s
                    )
                    await asyncio.sleep(wait_s)
                    attempt += 1

    async def get_stats(self) -> dict[str, int]:
        """Get runtime LLM call stats."""
        async with self._stats_lock:
            return {
                "total_calls": self._total_calls,
                "retries": self._retry_count,
            }


def _is_retryable(exc: LLMError) -> bool:
    if exc.status is not None:
        return exc.status == 429 or exc.status >= 500
    msg = str(exc).lower()
    return any(m in msg for m in ("rate limit", "timed out", "timeout", "temporar"))

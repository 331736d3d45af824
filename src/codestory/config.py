"""Runtime configuration read from the environment and ``.env`` files."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel

from .llm import DEFAULT_MODEL, OPENAI_BASE_URL

logger = logging.getLogger(__name__)


def load_dotenv(start_dir: Path) -> None:
    """Load a .env file from *start_dir* (or parents) into os.environ.

    This is how ``OPENAI_API_KEY``, ``PORT`` and the ``CODESTORY_*``
    settings reach :meth:`CodeStoryConfig.from_env` when ``codestory
    serve`` or ``codestory explain`` is started from a project checkout.
    Variables already exported in the shell always win; comments, blank
    lines and lines without ``=`` are skipped.
    """
    search = start_dir.resolve()
    for d in [search, *search.parents]:
        candidate = d / ".env"
        if candidate.is_file():
            try:
                for line in candidate.read_text(encoding="utf-8").splitlines():
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue
                    if "=" not in line:
                        continue
                    key, _, value = line.partition("=")
                    key = key.strip()
                    value = value.strip().strip("\"'")
                    if key and key not in os.environ:
                        os.environ[key] = value
            except OSError as exc:
                logger.warning("Could not read %s: %s", candidate, exc)
            return  # stop after the first .env found


class CodeStoryConfig(BaseModel):
    """Server and LLM settings.

    Precedence: CLI flag > environment > default.
    """

    api_key: str = ""
    """OpenAI API key (``OPENAI_API_KEY``). Empty disables analysis."""

    model: str = DEFAULT_MODEL
    """Default model when a request does not name one."""

    base_url: str = OPENAI_BASE_URL
    """Responses API base URL (``OPENAI_BASE_URL``)."""

    host: str = "127.0.0.1"
    """Bind address for ``codestory serve``."""

    port: int = 4000
    """Port for ``codestory serve`` (``PORT``)."""

    timeout: float = 120.0
    """Per-request LLM timeout in seconds."""

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "CodeStoryConfig":
        env = os.environ if env is None else env
        values: dict[str, object] = {}
        mapping = {
            "api_key": "OPENAI_API_KEY",
            "model": "CODESTORY_MODEL",
            "base_url": "OPENAI_BASE_URL",
            "host": "CODESTORY_HOST",
            "port": "PORT",
            "timeout": "CODESTORY_TIMEOUT",
        }
        for field_name, var in mapping.items():
            raw = env.get(var, "").strip()
            if raw:
                values[field_name] = raw
        return cls.model_validate(values)

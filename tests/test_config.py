"""Tests for configuration loading."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from codestory.config import CodeStoryConfig, load_dotenv
from codestory.llm import DEFAULT_MODEL


def test_defaults_without_environment() -> None:
    cfg = CodeStoryConfig.from_env({})
    assert cfg.api_key == ""
    assert cfg.model == DEFAULT_MODEL
    assert cfg.port == 4000


def test_environment_overrides() -> None:
    cfg = CodeStoryConfig.from_env({
        "OPENAI_API_KEY": "sk-1",
        "CODESTORY_MODEL": "gpt-4.1",
        "PORT": "8080",
        "CODESTORY_TIMEOUT": "30",
        "OPENAI_BASE_URL": "http://localhost:9999/v1",
    })
    assert cfg.api_key == "sk-1"
    assert cfg.model == "gpt-4.1"
    assert cfg.port == 8080
    assert cfg.timeout == 30.0
    assert cfg.base_url == "http://localhost:9999/v1"


def test_blank_values_are_ignored() -> None:
    cfg = CodeStoryConfig.from_env({"PORT": "  ", "CODESTORY_MODEL": ""})
    assert cfg.port == 4000
    assert cfg.model == DEFAULT_MODEL


def test_invalid_port_is_rejected() -> None:
    with pytest.raises(ValidationError):
        CodeStoryConfig.from_env({"PORT": "eighty"})


def test_load_dotenv_only_sets_missing_vars(monkeypatch, tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "# comment\n"
        "CODESTORY_TEST_NEW='from-file'\n"
        "CODESTORY_TEST_SET=from-file\n"
        "not a pair\n",
        encoding="utf-8",
    )
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.delenv("CODESTORY_TEST_NEW", raising=False)
    monkeypatch.setenv("CODESTORY_TEST_SET", "from-env")

    load_dotenv(nested)

    assert os.environ["CODESTORY_TEST_NEW"] == "from-file"
    assert os.environ["CODESTORY_TEST_SET"] == "from-env"
    monkeypatch.delenv("CODESTORY_TEST_NEW")

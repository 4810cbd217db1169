"""Shared fixtures: every test starts from default settings and no API keys."""

from __future__ import annotations

import pytest

from devagent.core.config import reset_settings

_ENV_KEYS = (
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "GUIDANCE_MODEL",
    "GENERATION_MODEL",
    "WORKSPACE_ROOT",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch, tmp_path):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()

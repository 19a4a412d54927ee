# /tests/test_config.py
from __future__ import annotations
import importlib.util

import pytest

from postino import config


def _fresh_settings() -> config.Settings:
    """Evaluate the config module again so env changes are picked up, without touching postino.config."""
    spec = importlib.util.spec_from_file_location("postino_config_fresh", config.__file__)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.settings


def test_port_defaults_to_3000(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PORT", raising=False)
    assert _fresh_settings().PORT == 3000


def test_port_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "8081")
    assert _fresh_settings().PORT == 8081


def test_cors_origins_split_on_commas(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", "https://a.test, https://b.test,")
    assert _fresh_settings().CORS_ORIGINS == ["https://a.test", "https://b.test"]

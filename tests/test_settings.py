"""Typed smoke tests for the settings loader.

These tests verify three guarantees:
1) Defaults match the documented limits (64-char class names, 64-slot batches).
2) Environment variables override defaults after clearing the loader cache.
3) `get_logger()` respects the configured log level when constructing loggers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

import pytest

from niftyprefs.core.settings import Settings, get_logger, load_settings


@pytest.fixture(autouse=True)  # type: ignore[misc]
def fresh_settings() -> Iterator[None]:
    """Rebuild cached settings around each test so env changes do not leak."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def test_defaults() -> None:
    """A bare `Settings()` carries the library's documented limits."""
    s = Settings()
    assert s.max_classname == 64
    assert s.slot_batch == 64
    assert s.max_slots == 0
    assert s.max_depth == 256
    assert s.xml_indent == "  "


def test_field_names_are_accepted_as_keywords() -> None:
    """Tests and callers build settings by field name, not only by env alias."""
    s = Settings(max_depth=5, slot_batch=2)
    assert s.max_depth == 5
    assert s.slot_batch == 2


def test_env_overrides_with_cache_clear(monkeypatch: Any) -> None:
    """Changing env vars should take effect after `load_settings.cache_clear()`."""
    monkeypatch.setenv("NIFTYPREFS_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("NIFTYPREFS_MAX_CLASSNAME", "8")

    load_settings.cache_clear()
    s = load_settings()

    assert s.log_level == "DEBUG"
    assert s.max_classname == 8
    assert s.log_level_numeric() == logging.DEBUG


def test_loader_is_cached() -> None:
    assert load_settings() is load_settings()


def test_get_logger_respects_level(monkeypatch: Any) -> None:
    """`get_logger()` should apply the numeric level derived from the setting.

    A unique logger name avoids side effects between tests.
    """
    monkeypatch.setenv("NIFTYPREFS_LOG_LEVEL", "ERROR")
    load_settings.cache_clear()

    logger = get_logger("niftyprefs.tests.settings")

    assert logger.level == logging.ERROR
    assert logger.propagate is False
    assert logger.handlers, "Expected at least one StreamHandler to be attached."

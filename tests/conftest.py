"""Shared pytest fixtures for SmartScript tests."""

from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING

import pytest

from smartscript.config import Settings, get_settings
from smartscript.engine.cache import ResultCache, clear_cache
from smartscript.engine.patterns import CompiledPatternSet, compile_patterns

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Strip SMARTSCRIPT_* env vars and reset module-level caches per test."""
    for key in list(os.environ):
        if key.startswith("SMARTSCRIPT_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    clear_cache()
    yield
    get_settings.cache_clear()
    clear_cache()


@pytest.fixture
def settings() -> Settings:
    """Default settings with no .env file."""
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def patterns(settings: Settings) -> CompiledPatternSet:
    return compile_patterns(settings)


@pytest.fixture
def pattern(patterns: CompiledPatternSet) -> re.Pattern[str]:
    """The default Combined Pattern."""
    return patterns.combined


@pytest.fixture
def cache() -> ResultCache:
    """A fresh private result cache."""
    return ResultCache()


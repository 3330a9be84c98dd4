"""Centralised SmartScript configuration using pydantic-settings.

All environment variables are read through the Settings class, with a
``SMARTSCRIPT_`` prefix and ``__`` as the nesting delimiter
(``SMARTSCRIPT_PERFORMANCE__BATCH_SIZE=25``).
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

logger = logging.getLogger(__name__)

# src/smartscript/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class TransformationsConfig(BaseModel):
    """Per-category enable flags. A disabled category never matches."""

    trademark: bool = True
    registered: bool = True
    copyright: bool = True
    ordinals: bool = True
    chemicals: bool = True
    math_super: bool = True
    math_sub: bool = True


class CustomPatternsConfig(BaseModel):
    """Optional regex source overrides, one per category.

    Invalid sources are not rejected here; the pattern compiler logs them
    and falls back to the category default.
    """

    trademark: str | None = None
    registered: str | None = None
    copyright: str | None = None
    ordinals: str | None = None
    chemicals: str | None = None
    math_super: str | None = None
    math_sub: str | None = None


class SymbolsConfig(BaseModel):
    """Independent gate on the ordinal alternative of the Combined Pattern."""

    ordinals: bool = True


_DEFAULT_INCLUDE = [
    # Container elements
    "main",
    "article",
    ".content",
    '[role="main"]',
    ".prose",
    ".blog-post",
    ".blog-content",
    "section",
    "header",
    "footer",
    # Headings
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    # Text content
    "p",
    "li",
    "td",
    "th",
    "blockquote",
    "caption",
    "dt",
    "dd",
    "figcaption",
    # Inline
    "span",
    "a",
    "strong",
    "em",
    "b",
    "i",
    "small",
    "cite",
    "abbr",
    # Interactive
    "button",
    "label",
    "legend",
    "summary",
    "address",
]

_DEFAULT_EXCLUDE = [
    "pre",
    "code",
    "script",
    "style",
    ".no-superscript",
    "[data-no-superscript]",
    # Our own generated elements
    "sup.ss-sup",
    "sub.ss-sub",
    ".ss-tm",
    ".ss-reg",
    ".ss-ordinal",
    ".ss-chemical",
    ".ss-math",
]


class SelectorsConfig(BaseModel):
    """CSS selectors choosing containers for tree-mode processing."""

    include: list[str] = Field(default_factory=lambda: list(_DEFAULT_INCLUDE))
    exclude: list[str] = Field(default_factory=lambda: list(_DEFAULT_EXCLUDE))


class PerformanceConfig(BaseModel):
    """Timing and batching knobs. Times are in milliseconds."""

    # Quiet period before reprocessing after a content change
    debounce: int = 100
    batch_size: int = 50
    # Wait before the first pass over a freshly loaded tree
    delay: int = 1500
    batch_threshold: int = 20
    cache_size: int = 1000


class ExclusionConfig(BaseModel):
    """Exclusion markers for string-mode rewriting."""

    tags: tuple[str, ...] = ("script", "style", "code", "pre")
    attribute: str = "data-no-superscript"
    class_name: str = "no-superscript"

    @field_validator("tags")
    @classmethod
    def _lowercase_tags(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(tag.lower() for tag in value)


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """SmartScript settings with automatic .env loading and type validation.

    Environment variables use the ``SMARTSCRIPT_`` prefix and a
    double-underscore delimiter for nesting:
    ``SMARTSCRIPT_TRANSFORMATIONS__CHEMICALS=false``,
    ``SMARTSCRIPT_CUSTOM_PATTERNS__ORDINALS=...``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_prefix="SMARTSCRIPT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    enabled: bool = True
    debug: bool = False
    ssr: bool = True
    # Live-tree processing of pages already stamped by the document pass
    client: bool = True

    transformations: TransformationsConfig = TransformationsConfig()
    custom_patterns: CustomPatternsConfig = CustomPatternsConfig()
    symbols: SymbolsConfig = SymbolsConfig()
    selectors: SelectorsConfig = SelectorsConfig()
    performance: PerformanceConfig = PerformanceConfig()
    exclusion: ExclusionConfig = ExclusionConfig()
    css_variables: dict[str, str] = Field(default_factory=dict)


class _DefaultSettings(Settings):
    """Settings built from field defaults only."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings,)


def default_settings() -> Settings:
    """Return pristine defaults, untouched by the environment or .env."""
    return _DefaultSettings()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
def validate_config(settings: Settings) -> list[str]:
    """Return human-readable problems with *settings* (empty if valid)."""
    errors: list[str] = []

    if settings.performance.debounce < 0:
        errors.append("Debounce value must be non-negative")

    if settings.performance.batch_size < 1:
        errors.append("Batch size must be at least 1")

    if settings.performance.delay < 0:
        errors.append("Delay value must be non-negative")

    if not settings.selectors.include:
        errors.append("At least one include selector is required")

    return errors


def load_settings(**overrides: Any) -> Settings:
    """Build Settings from env + *overrides*, falling back to defaults on error.

    Both pydantic type errors and ``validate_config`` problems are logged
    at ERROR and replaced by ``default_settings()``, which ignores the
    environment, .env and *overrides* alike.
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        logger.error("Configuration error: %s", exc)
        return default_settings()

    errors = validate_config(settings)
    if errors:
        logger.error("Invalid configuration: %s", ", ".join(errors))
        return default_settings()

    return settings


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = load_settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings

"""Regex patterns for typography transformations.

Builds one compiled pattern per category from defaults or custom
overrides, plus the Combined Pattern used to locate matches. The
Combined Pattern is never used to classify: classification re-runs the
anchored validators below on the literal matched text.
"""

# Pattern: Functional Core (pure functions for compilation and extraction)

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from smartscript.config import Settings

logger = logging.getLogger(__name__)


class Category(StrEnum):
    """The seven fixed transformation categories, in match-priority order."""

    TRADEMARK = "trademark"
    REGISTERED = "registered"
    COPYRIGHT = "copyright"
    ORDINALS = "ordinals"
    CHEMICALS = "chemicals"
    MATH_SUPER = "math_super"
    MATH_SUB = "math_sub"


# ---------------------------------------------------------------------------
# Default sources
# ---------------------------------------------------------------------------

# Only (TM), not a standalone TM
TRADEMARK_SOURCE = r"™|\(TM\)"
REGISTERED_SOURCE = r"®|\(R\)(?!\))"
COPYRIGHT_SOURCE = r"©|\(C\)(?!\))"

# Matches any number with a suffix; suffix correctness is checked at
# classification time so "2st" is located but left alone.
ORDINALS_SOURCE = r"\b(\d+)(st|nd|rd|th)\b"

# H1-H6 standalone tokens are filtered by the segmenter, not here.
CHEMICALS_SOURCE = r"([A-Z][a-z]?)(\d+)|\)(\d+)"

# Variable must follow start of text, whitespace, an operator, a digit or a
# lowercase letter (so E=mc^2 matches c^2 but MAX^2 does not).
MATH_SUPER_SOURCE = (
    r"(?:^|(?<=[\s=+\-*/().,\da-z]))([a-zA-Z])\^(\d+|[a-zA-Z]|\{[^}]+\})"
)
# Stricter context than superscript so identifiers like MAX_SIZE or
# file_name are not touched.
MATH_SUB_SOURCE = r"(?:^|(?<=[\s=+\-*/().,]))([a-zA-Z])_(\d+|[a-zA-Z]|\{[^}]+\})"

DEFAULT_SOURCES: dict[Category, str] = {
    Category.TRADEMARK: TRADEMARK_SOURCE,
    Category.REGISTERED: REGISTERED_SOURCE,
    Category.COPYRIGHT: COPYRIGHT_SOURCE,
    Category.ORDINALS: ORDINALS_SOURCE,
    Category.CHEMICALS: CHEMICALS_SOURCE,
    Category.MATH_SUPER: MATH_SUPER_SOURCE,
    Category.MATH_SUB: MATH_SUB_SOURCE,
}

# A word boundary that is also not a word boundary: can never match.
NEVER_MATCH = re.compile(r"\b\B")

# Benign sample searched by every custom pattern before it is accepted
_CANARY_TEXT = "test"

# ---------------------------------------------------------------------------
# Anchored validators and extractors
# ---------------------------------------------------------------------------

_TRADEMARK_VALIDATE = re.compile(r"^(?:™|\(TM\))$")
_REGISTERED_VALIDATE = re.compile(r"^(?:®|\(R\))$")
_COPYRIGHT_VALIDATE = re.compile(r"^(?:©|\(C\))$")
_ORDINAL_EXTRACT = re.compile(r"^(\d+)(st|nd|rd|th)$")
_CHEMICAL_ELEMENT_EXTRACT = re.compile(r"^([A-Z][a-z]?)(\d+)$")
_CHEMICAL_PARENS_EXTRACT = re.compile(r"^\)(\d+)$")
_MATH_SUPER_VALIDATE = re.compile(r"^[a-z]\^", re.IGNORECASE)
_MATH_SUB_VALIDATE = re.compile(r"^[a-z]_", re.IGNORECASE)
_MATH_VARIABLE_EXTRACT = re.compile(r"^([a-z])[\^_](.+)$", re.IGNORECASE)
_BRACES = re.compile(r"[{}]")


def is_trademark(text: str) -> bool:
    return _TRADEMARK_VALIDATE.match(text) is not None


def is_registered(text: str) -> bool:
    return _REGISTERED_VALIDATE.match(text) is not None


def is_copyright(text: str) -> bool:
    return _COPYRIGHT_VALIDATE.match(text) is not None


def is_math_superscript(text: str) -> bool:
    return _MATH_SUPER_VALIDATE.match(text) is not None


def is_math_subscript(text: str) -> bool:
    return _MATH_SUB_VALIDATE.match(text) is not None


def extract_ordinal(text: str) -> tuple[str, str] | None:
    """Split ``"42nd"`` into ``("42", "nd")``; None if not ordinal-shaped."""
    match = _ORDINAL_EXTRACT.match(text)
    if match is None:
        return None
    return match.group(1), match.group(2)


def extract_chemical_element(text: str) -> tuple[str, str] | None:
    """Split ``"Ca3"`` into ``("Ca", "3")``; None for ``"CO2"`` (two capitals)."""
    match = _CHEMICAL_ELEMENT_EXTRACT.match(text)
    if match is None:
        return None
    return match.group(1), match.group(2)


def extract_chemical_parentheses(text: str) -> str | None:
    """Return the count from ``")2"``, or None."""
    match = _CHEMICAL_PARENS_EXTRACT.match(text)
    return match.group(1) if match else None


def strip_braces(text: str) -> str:
    return _BRACES.sub("", text)


def extract_math_script(text: str) -> str:
    """Drop the leading operator and any braces: ``"^{n+1}"`` -> ``"n+1"``."""
    return strip_braces(text[1:])


def extract_math_with_variable(text: str) -> tuple[str, str] | None:
    """Split ``"z^{10}"`` into ``("z", "10")``; works for ``_`` as well."""
    match = _MATH_VARIABLE_EXTRACT.match(text)
    if match is None:
        return None
    return match.group(1), strip_braces(match.group(2))


def expected_ordinal_suffix(number: int) -> str:
    """Return the arithmetically correct English ordinal suffix.

    Numbers ending in 11, 12 or 13 take ``th``; otherwise the last digit
    decides (1 -> st, 2 -> nd, 3 -> rd, anything else -> th).
    """
    if 11 <= number % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompiledPatternSet:
    """One compiled pattern per category plus the Combined Pattern.

    Disabled categories hold ``NEVER_MATCH`` so the shape stays uniform;
    ``enabled`` lists the categories that contributed to ``combined``.
    """

    patterns: dict[Category, re.Pattern[str]]
    enabled: tuple[Category, ...]
    combined: re.Pattern[str]

    def __getitem__(self, category: Category) -> re.Pattern[str]:
        return self.patterns[category]


def safe_compile(custom: str | None, category: Category) -> re.Pattern[str]:
    """Compile a custom override, falling back to the category default.

    A custom source is rejected when it fails to compile or raises while
    searching a benign sample string. Rejection is logged at WARNING and
    never affects other categories.
    """
    default = DEFAULT_SOURCES[category]
    if not custom:
        return re.compile(default)

    try:
        regex = re.compile(custom)
        regex.search(_CANARY_TEXT)
        # Must also survive being joined into the Combined Pattern
        # (e.g. inline global flags are only legal at the very start).
        re.compile(f"{NEVER_MATCH.pattern}|{custom}")
    except Exception as exc:
        logger.warning("Invalid custom pattern for %s: %r (%s)", category, custom, exc)
        logger.info("Using default pattern for %s", category)
        return re.compile(default)

    logger.debug("Custom pattern applied for %s: %r", category, custom)
    return regex


def build_combined_pattern(
    patterns: dict[Category, re.Pattern[str]],
    enabled: tuple[Category, ...],
) -> re.Pattern[str]:
    """Join the sources of enabled categories into one alternation.

    Order follows ``Category`` declaration order, which fixes match
    priority when two alternatives could start at the same offset.
    With nothing enabled the result is ``NEVER_MATCH``.
    """
    ordered = [category for category in Category if category in enabled]
    if not ordered:
        return NEVER_MATCH
    try:
        return re.compile("|".join(patterns[category].pattern for category in ordered))
    except re.error as exc:
        # Individually valid custom sources can clash once joined
        # (duplicate group names).
        logger.warning(
            "Custom patterns conflict when combined (%s); using defaults", exc
        )
        return re.compile("|".join(DEFAULT_SOURCES[category] for category in ordered))


def compile_patterns(config: Settings) -> CompiledPatternSet:
    """Build the compiled pattern set for *config*.

    Pure with respect to program state apart from diagnostics.
    """
    transforms = config.transformations
    custom = config.custom_patterns

    patterns: dict[Category, re.Pattern[str]] = {}
    enabled: list[Category] = []
    for category in Category:
        if not getattr(transforms, category.value):
            patterns[category] = NEVER_MATCH
            continue
        patterns[category] = safe_compile(getattr(custom, category.value), category)
        # symbols.ordinals is an independent gate on the combined pattern
        if category is Category.ORDINALS and not config.symbols.ordinals:
            continue
        enabled.append(category)

    combined = build_combined_pattern(patterns, tuple(enabled))
    logger.debug("Combined pattern built from %d categories", len(enabled))
    return CompiledPatternSet(
        patterns=patterns,
        enabled=tuple(enabled),
        combined=combined,
    )

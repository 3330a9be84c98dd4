"""Classification of a single matched substring.

The Combined Pattern only says *where* something matched. What it is
gets decided here by re-running anchored validators on the literal text
in a fixed priority order, producing one tagged variant per category.
``render`` turns a variant into output parts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from smartscript.engine.parts import subscript, superscript, text
from smartscript.engine.patterns import (
    expected_ordinal_suffix,
    extract_chemical_element,
    extract_chemical_parentheses,
    extract_math_with_variable,
    extract_ordinal,
    is_copyright,
    is_math_subscript,
    is_math_superscript,
    is_registered,
    is_trademark,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from smartscript.engine.parts import OutputPart

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Trademark:
    source: str


@dataclass(frozen=True, slots=True)
class Registered:
    source: str


@dataclass(frozen=True, slots=True)
class Copyright:
    source: str


@dataclass(frozen=True, slots=True)
class Ordinal:
    number: str
    suffix: str


@dataclass(frozen=True, slots=True)
class Chemical:
    """``prefix`` is the element symbol, or ``)`` for a parenthesised group."""

    prefix: str
    count: str


@dataclass(frozen=True, slots=True)
class MathSuper:
    variable: str
    script: str


@dataclass(frozen=True, slots=True)
class MathSub:
    variable: str
    script: str


@dataclass(frozen=True, slots=True)
class Unmatched:
    source: str


Classification = (
    Trademark
    | Registered
    | Copyright
    | Ordinal
    | Chemical
    | MathSuper
    | MathSub
    | Unmatched
)


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Outcome of processing one match: was it transformed, and into what."""

    modified: bool
    parts: list[OutputPart]


# ---------------------------------------------------------------------------
# Individual classifiers (each returns None when it does not apply)
# ---------------------------------------------------------------------------


def _classify_trademark(matched: str) -> Classification | None:
    return Trademark(matched) if is_trademark(matched) else None


def _classify_registered(matched: str) -> Classification | None:
    return Registered(matched) if is_registered(matched) else None


def _classify_copyright(matched: str) -> Classification | None:
    return Copyright(matched) if is_copyright(matched) else None


def _classify_ordinal(matched: str) -> Classification | None:
    """Ordinal-shaped text with a wrong suffix is claimed as Unmatched.

    ``2st`` must not fall through to later classifiers; it stays literal.
    """
    extracted = extract_ordinal(matched)
    if extracted is None:
        return None
    number, suffix = extracted
    # Last two digits decide the suffix; int() rejects very long digit strings
    if suffix != expected_ordinal_suffix(int(number[-2:])):
        logger.debug("Invalid ordinal suffix: %r", matched)
        return Unmatched(matched)
    return Ordinal(number, suffix)


def _classify_chemical_parentheses(matched: str) -> Classification | None:
    count = extract_chemical_parentheses(matched)
    return Chemical(")", count) if count is not None else None


def _classify_chemical_element(matched: str) -> Classification | None:
    extracted = extract_chemical_element(matched)
    return Chemical(*extracted) if extracted is not None else None


def _classify_math_super(matched: str) -> Classification | None:
    if not is_math_superscript(matched):
        return None
    extracted = extract_math_with_variable(matched)
    return MathSuper(*extracted) if extracted is not None else None


def _classify_math_sub(matched: str) -> Classification | None:
    if not is_math_subscript(matched):
        return None
    extracted = extract_math_with_variable(matched)
    return MathSub(*extracted) if extracted is not None else None


# Priority order is part of the contract: first classifier to claim wins.
CLASSIFIERS: tuple[Callable[[str], Classification | None], ...] = (
    _classify_trademark,
    _classify_registered,
    _classify_copyright,
    _classify_ordinal,
    _classify_chemical_parentheses,
    _classify_chemical_element,
    _classify_math_super,
    _classify_math_sub,
)


def classify(matched: str) -> Classification:
    """Classify *matched* independently of which regex alternative found it."""
    for classifier in CLASSIFIERS:
        result = classifier(matched)
        if result is not None:
            return result
    return Unmatched(matched)


def render(classification: Classification) -> list[OutputPart]:
    """Render a classification into its canonical output parts."""
    match classification:
        case Trademark():
            return [superscript("™", "trademark")]
        case Registered():
            return [superscript("®", "registered")]
        case Copyright():
            # Copyright is never raised; only the symbol is normalised.
            return [text("©")]
        case Ordinal(number=number, suffix=suffix):
            return [text(number), superscript(suffix, "ordinal")]
        case Chemical(prefix=prefix, count=count):
            return [text(prefix), subscript(count, "chemical")]
        case MathSuper(variable=variable, script=script):
            return [text(variable), superscript(script, "math")]
        case MathSub(variable=variable, script=script):
            return [text(variable), subscript(script, "math")]
        case Unmatched(source=source):
            return [text(source)]


def process_match(matched: str) -> MatchResult:
    """Classify and render one matched substring."""
    classification = classify(matched)
    logger.debug("Match %r classified as %s", matched, type(classification).__name__)
    return MatchResult(
        modified=not isinstance(classification, Unmatched),
        parts=render(classification),
    )

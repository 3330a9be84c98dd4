"""Output parts: the atomic unit of rewritten text.

A segmentation is an ordered list of ``OutputPart`` values with no gaps
and no overlaps relative to the input it was computed from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PartKind = Literal["text", "superscript", "subscript"]
Subtype = Literal["trademark", "registered", "ordinal", "chemical", "math"]


@dataclass(frozen=True, slots=True)
class OutputPart:
    """One piece of a segmentation.

    Attributes:
        kind: ``text`` for plain runs, ``superscript``/``subscript`` for
            raised or lowered content.
        content: The rendered content. For symbol categories this is the
            canonical character (``™``), not the source spelling (``(TM)``).
        subtype: Category-derived tag for styling and accessibility.
            Always None for text parts.
    """

    kind: PartKind
    content: str
    subtype: Subtype | None = None


def text(content: str) -> OutputPart:
    return OutputPart("text", content)


def superscript(content: str, subtype: Subtype) -> OutputPart:
    return OutputPart("superscript", content, subtype)


def subscript(content: str, subtype: Subtype) -> OutputPart:
    return OutputPart("subscript", content, subtype)


def parts_to_text(parts: list[OutputPart]) -> str:
    """Concatenate every part's content, treating all kinds as text."""
    return "".join(part.content for part in parts)


def has_modifications(parts: list[OutputPart], original: str) -> bool:
    """Return True if *parts* differ from leaving *original* untouched.

    Either a non-text part exists, or the concatenated content changed
    (the copyright case, where ``(C)`` becomes a plain ``©``).
    """
    if any(part.kind != "text" for part in parts):
        return True
    return parts_to_text(parts) != original

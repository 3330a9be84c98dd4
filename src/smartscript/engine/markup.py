"""Generated-markup naming contract.

Class names, marker attributes and HTML rendering of output parts.
Downstream stylesheets and the engine's own skip-generated-output logic
both depend on these names; they are not configurable.
"""

from __future__ import annotations

import html as html_module
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from smartscript.engine.parts import OutputPart

CSS_CLASSES: dict[str, str] = {
    "superscript": "ss-sup",
    "subscript": "ss-sub",
    "trademark": "ss-tm",
    "registered": "ss-reg",
    "ordinal": "ss-ordinal",
    "chemical": "ss-chemical",
    "math": "ss-math",
}

GENERATED_CLASS_PREFIX = "ss-"

# Set on a container once any of its text leaves was rewritten
PROCESSED_ATTRIBUTE = "data-superscript-processed"

# <meta name="..."> stamped into <head> by document processing
PROCESSED_META_NAME = "smartscript-processed"

_GENERATED_CLASSES = frozenset(CSS_CLASSES.values())
_DIGITS = re.compile(r"^\d+$")

# Map of characters that need HTML entity escaping in generated content.
# Apostrophes are safe in element content and stay as-is.
_ESCAPE_MAP: dict[str, str] = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
}
# A bare "&" is escaped; one that already starts an entity is kept so
# content taken from serialised markup is not double-escaped.
_ESCAPE_CHARS = re.compile(r'&(?!#?[A-Za-z0-9]+;)|[<>"]')
_GENERATED_MARKUP = ('<span class="ss-', '<sup class="ss-', '<sub class="ss-')


def is_generated_class(class_value: str | None) -> bool:
    """True if a class attribute value carries one of our generated classes."""
    if not class_value:
        return False
    return any(token in _GENERATED_CLASSES for token in class_value.split())


def escape_html(text: str) -> str:
    """Escape ``& < > "`` unless *text* already holds generated markup."""
    if any(marker in text for marker in _GENERATED_MARKUP):
        return text
    return _ESCAPE_CHARS.sub(lambda m: _ESCAPE_MAP[m.group(0)[0]], text)


# ---------------------------------------------------------------------------
# Tree-mode elements
# ---------------------------------------------------------------------------


def element_classes(part: OutputPart) -> str:
    """Class attribute for a tree-mode ``<sup>``/``<sub>`` element."""
    if part.kind == "superscript":
        base = CSS_CLASSES["superscript"]
        if part.subtype in ("trademark", "registered", "ordinal", "math"):
            return f"{base} {CSS_CLASSES[part.subtype]}"
        return base

    base = CSS_CLASSES["subscript"]
    if part.subtype in ("chemical", "math"):
        return f"{base} {CSS_CLASSES[part.subtype]}"
    return base


def aria_label_for(part: OutputPart) -> str:
    """Accessibility label for a raised or lowered part.

    Literal labels for trademark/registered/ordinal, the bare digits for
    numeric chemical subscripts, and a spoken phrase for everything else.
    """
    if part.kind == "superscript":
        if part.subtype in ("trademark", "registered"):
            return part.subtype
        if part.subtype == "ordinal":
            return part.content
        return f"superscript {part.content}"

    if part.subtype == "chemical" and _DIGITS.match(part.content):
        return part.content
    return f"subscript {part.content}"


def element_html(part: OutputPart) -> str:
    """Full tree-mode element markup for one non-text part."""
    tag = "sup" if part.kind == "superscript" else "sub"
    classes = html_module.escape(element_classes(part))
    label = html_module.escape(aria_label_for(part))
    content = html_module.escape(part.content, quote=False)
    return f'<{tag} class="{classes}" aria-label="{label}">{content}</{tag}>'


# ---------------------------------------------------------------------------
# String-mode rendering
# ---------------------------------------------------------------------------


def part_to_html(part: OutputPart) -> str:
    """Render one part as minimal inline markup for string mode."""
    if part.kind == "text":
        return part.content

    content = escape_html(part.content)
    if part.subtype in ("trademark", "registered"):
        # Span rather than sup: symbol positioning is left to CSS
        return f'<span class="{CSS_CLASSES[part.subtype]}">{content}</span>'
    if part.kind == "superscript":
        return f'<sup class="ss-{part.subtype or "super"}">{content}</sup>'
    return f'<sub class="ss-{part.subtype or "sub"}">{content}</sub>'


def parts_to_html(parts: list[OutputPart]) -> str:
    """Render a segmentation as inline HTML.

    Text parts are emitted as-is: they come from text runs of already
    serialised markup and are therefore already escaped.
    """
    return "".join(part_to_html(part) for part in parts)

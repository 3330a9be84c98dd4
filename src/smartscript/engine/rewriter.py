"""String-mode rewriting of serialised HTML.

One regex pass alternates between tag tokens and text runs. Tag tokens
are emitted verbatim and only drive a small stack machine that tracks
exclusion; text runs outside exclusion are segmented and re-rendered as
inline markup. Malformed markup degrades to best-effort output and never
raises.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from smartscript.engine.cache import resolve_cache
from smartscript.engine.markup import is_generated_class, parts_to_html
from smartscript.engine.segmenter import needs_processing

if TYPE_CHECKING:
    from collections.abc import Iterable

    from smartscript.engine.cache import ResultCache

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_TAGS: frozenset[str] = frozenset(("script", "style", "code", "pre"))
DEFAULT_EXCLUSION_ATTRIBUTE = "data-no-superscript"
DEFAULT_EXCLUSION_CLASS = "no-superscript"

# Group 1: whole tag, group 2: tag content, group 3: text run
_TOKEN = re.compile(r"(<([^>]+)>)|([^<]+)")
_TAG_NAME = re.compile(r"^/?([a-z0-9]+)", re.IGNORECASE)
_CLASS_ATTRIBUTE = re.compile(
    r"""\bclass\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE
)

# Elements that never have a closing tag, so never occupy a stack slot
_VOID_TAGS = frozenset(
    (
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    )
)


@dataclass(frozen=True, slots=True)
class Frame:
    """One open element: its name, and whether it opened an exclusion zone."""

    tag_name: str
    is_exclusion_zone: bool = False


class TagStack:
    """Open-element stack with exclusion bookkeeping.

    Exclusion comes from two independent sources layered on the same
    frames: the element's tag name (``<pre>``) and an exclusion marker in
    its attributes. Each source has its own counter, so nesting to any
    depth unwinds correctly.
    """

    def __init__(
        self,
        excluded_tags: frozenset[str],
        exclusion_attribute: str = DEFAULT_EXCLUSION_ATTRIBUTE,
        exclusion_class: str = DEFAULT_EXCLUSION_CLASS,
    ) -> None:
        self.excluded_tags = excluded_tags
        self._zone_markers = (
            exclusion_attribute,
            f'class="{exclusion_class}"',
            f"class='{exclusion_class}'",
        )
        self.frames: list[Frame] = []
        self.excluded_tag_depth = 0
        self.zone_depth = 0

    @property
    def in_excluded(self) -> bool:
        return self.excluded_tag_depth > 0 or self.zone_depth > 0

    def _opens_zone(self, tag_content: str) -> bool:
        if any(marker in tag_content for marker in self._zone_markers):
            return True
        # Our own generated output is a zone too, so rewriting is idempotent
        class_match = _CLASS_ATTRIBUTE.search(tag_content)
        if class_match is None:
            return False
        return is_generated_class(class_match.group(1) or class_match.group(2))

    def open(self, tag_name: str, tag_content: str) -> None:
        frame = Frame(tag_name, is_exclusion_zone=self._opens_zone(tag_content))
        self.frames.append(frame)
        if tag_name in self.excluded_tags:
            self.excluded_tag_depth += 1
        if frame.is_exclusion_zone:
            self.zone_depth += 1

    def close(self) -> None:
        """Pop the innermost frame; a stray closing tag is a no-op."""
        if not self.frames:
            logger.debug("Closing tag with empty stack; ignoring")
            return
        frame = self.frames.pop()
        if frame.tag_name in self.excluded_tags:
            self.excluded_tag_depth -= 1
        if frame.is_exclusion_zone:
            self.zone_depth -= 1

    def feed_tag(self, tag_content: str) -> None:
        """Apply the stack effect of one ``<...>`` token's inner text."""
        if tag_content.startswith(("!", "?")):
            # Comment, doctype or processing instruction
            return

        name_match = _TAG_NAME.match(tag_content)
        tag_name = name_match.group(1).lower() if name_match else ""

        if tag_content.startswith("/"):
            self.close()
        elif not tag_content.endswith("/") and tag_name not in _VOID_TAGS:
            self.open(tag_name, tag_content)


def transform_text_to_html(
    text: str,
    pattern: re.Pattern[str],
    cache: ResultCache | None = None,
) -> str:
    """Rewrite one plain-text run into inline markup.

    Text without a match is returned unchanged.
    """
    if not needs_processing(text, pattern):
        return text
    parts = resolve_cache(cache).get(text, pattern)
    return parts_to_html(parts)


def rewrite(
    markup: str,
    pattern: re.Pattern[str],
    exclusion_tag_names: Iterable[str] = DEFAULT_EXCLUDED_TAGS,
    exclusion_attribute: str = DEFAULT_EXCLUSION_ATTRIBUTE,
    exclusion_class: str = DEFAULT_EXCLUSION_CLASS,
    cache: ResultCache | None = None,
) -> str:
    """Rewrite every eligible text run in an HTML string.

    Args:
        markup: Serialised HTML fragment or document.
        pattern: The Combined Pattern.
        exclusion_tag_names: Elements whose content is never touched.
        exclusion_attribute: Attribute marking an exclusion zone.
        exclusion_class: Class marking an exclusion zone (matched as a
            literal ``class="..."`` substring).
        cache: Result cache; defaults to the shared module cache.

    Returns:
        *markup* with tags byte-identical and eligible text rewritten.
    """
    stack = TagStack(
        frozenset(name.lower() for name in exclusion_tag_names),
        exclusion_attribute,
        exclusion_class,
    )
    resolved_cache = resolve_cache(cache)

    def _replace(match: re.Match[str]) -> str:
        full_tag, tag_content, text = match.groups()
        if full_tag is not None:
            stack.feed_tag(tag_content)
            return full_tag

        if stack.in_excluded or not text.strip():
            return text
        try:
            return transform_text_to_html(text, pattern, resolved_cache)
        except Exception:
            logger.exception("Failed to rewrite text run: %r", text[:50])
            return text

    return _TOKEN.sub(_replace, markup)

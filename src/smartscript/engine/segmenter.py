"""Text segmentation over the Combined Pattern.

Every scan builds its own cursor with ``Pattern.search(text, pos)``; no
scan position is ever stored on a shared pattern object, so calls never
interfere with one another.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from smartscript.engine.classifier import process_match
from smartscript.engine.parts import text as text_part

if TYPE_CHECKING:
    from collections.abc import Iterator

    from smartscript.engine.parts import OutputPart

logger = logging.getLogger(__name__)

# Heading-shaped token (H1-H6) that collides with chemical formulas
_HEADING_TOKEN = re.compile(r"^H[1-6]$")
_UPPERCASE = re.compile(r"[A-Z]")


def _is_standalone_heading_token(text: str, match: re.Match[str]) -> bool:
    """True for ``H2`` not directly followed by an uppercase letter.

    ``H2O`` is water; ``H2`` alone (or ``H2 tag``) is a heading reference.
    """
    if not _HEADING_TOKEN.match(match.group(0)):
        return False
    next_char = text[match.end() : match.end() + 1]
    return not next_char or _UPPERCASE.match(next_char) is None


def iter_matches(text: str, pattern: re.Pattern[str]) -> Iterator[re.Match[str]]:
    """Yield accepted matches of *pattern* in *text*, left to right.

    A discarded heading token advances the cursor by one character past
    its start rather than past its end, so a real match beginning inside
    it is still found. Empty matches are skipped the same way.
    """
    pos = 0
    length = len(text)
    while pos <= length:
        match = pattern.search(text, pos)
        if match is None:
            return
        if match.end() == match.start() or _is_standalone_heading_token(text, match):
            logger.debug("Skipping match %r at %d", match.group(0), match.start())
            pos = match.start() + 1
            continue
        yield match
        pos = match.end()


def segment(text: str, pattern: re.Pattern[str]) -> list[OutputPart]:
    """Split *text* into output parts using the Combined Pattern.

    Total and deterministic: returns at least one part, and never raises
    on odd input; anything that fails validation stays as text.
    """
    parts: list[OutputPart] = []
    last_end = 0

    for match in iter_matches(text, pattern):
        if match.start() > last_end:
            parts.append(text_part(text[last_end : match.start()]))
        parts.extend(process_match(match.group(0)).parts)
        last_end = match.end()

    if last_end < len(text) or not parts:
        parts.append(text_part(text[last_end:]))

    return parts


def needs_processing(text: str, pattern: re.Pattern[str]) -> bool:
    """Cheap existence check: does *pattern* match anywhere in *text*?"""
    return pattern.search(text) is not None

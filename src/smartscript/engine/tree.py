"""Tree-mode processing: rewrite text leaves of a live selectolax tree.

Containers are found by inclusion selectors; inside each one the text
leaves are collected first and only then replaced, so discovery never
walks a tree it is mutating. Large containers are processed in batches
with a yield point between batches.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from selectolax.lexbor import LexborHTMLParser, LexborNode

from smartscript.engine.cache import resolve_cache
from smartscript.engine.markup import (
    PROCESSED_ATTRIBUTE,
    element_html,
    is_generated_class,
)
from smartscript.engine.parts import has_modifications
from smartscript.engine.segmenter import needs_processing

if TYPE_CHECKING:
    import re
    from collections.abc import Callable, Iterable, Iterator

    from smartscript.engine.cache import ResultCache
    from smartscript.engine.parts import OutputPart

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50
DEFAULT_BATCH_THRESHOLD = 20

_TEXT_TAG = "-text"
_GENERATED_TAGS = frozenset(("sup", "sub", "span"))

Root = LexborHTMLParser | LexborNode


@dataclass
class ProcessingStats:
    """Counters for one ``process_root`` pass."""

    containers: int = 0
    skipped: int = 0
    leaves_seen: int = 0
    leaves_modified: int = 0
    batches: int = 0
    errors: int = 0


# ---------------------------------------------------------------------------
# Node predicates
# ---------------------------------------------------------------------------


def _is_element(node: Any) -> bool:
    tag = node.tag
    return bool(tag) and not tag.startswith(("-", "#"))


class ExclusionIndex:
    """Identity set of the nodes matched by exclusion selectors.

    Each selector is run once against the whole tree; membership is then
    a set lookup on the node's memory id. A malformed selector is logged
    and contributes nothing.
    """

    def __init__(self, root: Root, selectors: Iterable[str]) -> None:
        self._ids: set[int] = set()
        self.invalid: list[str] = []
        for selector in selectors:
            try:
                matched = root.css(selector)
            except Exception as exc:
                logger.warning("Invalid exclude selector %r: %s", selector, exc)
                self.invalid.append(selector)
                continue
            self._ids.update(node.mem_id for node in matched)

    def __contains__(self, node: Any) -> bool:
        return node.mem_id in self._ids


def should_exclude_element(node: Any, index: ExclusionIndex) -> bool:
    """True if *node* itself matches an exclusion selector."""
    return node in index


def is_excluded(node: Any, index: ExclusionIndex) -> bool:
    """True if *node* or any ancestor element matches an exclusion selector."""
    current = node
    while current is not None and _is_element(current):
        if current in index:
            return True
        current = current.parent
    return False


def is_generated(node: Any) -> bool:
    """True for ``<sup>``/``<sub>``/``<span>`` elements this engine produced."""
    return node.tag in _GENERATED_TAGS and is_generated_class(
        node.attributes.get("class")
    )


def is_processed(node: Any) -> bool:
    return node.attributes.get(PROCESSED_ATTRIBUTE) == "true"


def mark_as_processed(node: Any) -> None:
    node.attrs[PROCESSED_ATTRIBUTE] = "true"
    logger.debug("Marked element as processed: %s", node.tag)


def reset_processing_flags(root: Root) -> int:
    """Remove the processed marker from every element under *root*.

    Returns the number of flags cleared.
    """
    flagged = root.css(f"[{PROCESSED_ATTRIBUTE}]")
    for node in flagged:
        del node.attrs[PROCESSED_ATTRIBUTE]
    logger.debug("Reset %d processing flags", len(flagged))
    return len(flagged)


def initialize_for_navigation(root: Root, cache: ResultCache | None = None) -> None:
    """Prepare for a fresh pass after the document changed wholesale."""
    reset_processing_flags(root)
    resolve_cache(cache).clear()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def collect_text_leaves(
    container: LexborNode, index: ExclusionIndex, pattern: re.Pattern[str]
) -> list[LexborNode]:
    """Collect eligible text leaves under *container* in document order.

    Skips subtrees rooted at excluded or engine-generated elements, blank
    text, and text the Combined Pattern cannot match. Does not mutate.
    """
    leaves: list[LexborNode] = []

    def _walk(node: Any) -> None:
        if node.tag == _TEXT_TAG:
            text = node.text_content
            if text and text.strip() and needs_processing(text, pattern):
                leaves.append(node)
            return

        if not _is_element(node):
            return
        if is_generated(node) or should_exclude_element(node, index):
            return

        child = node.child
        while child is not None:
            _walk(child)
            child = child.next

    child = container.child
    while child is not None:
        _walk(child)
        child = child.next

    return leaves


# ---------------------------------------------------------------------------
# Replacement
# ---------------------------------------------------------------------------


def create_part_node(part: OutputPart) -> LexborNode:
    """Build a detached ``<sup>``/``<sub>`` node for a non-text part."""
    tag = "sup" if part.kind == "superscript" else "sub"
    fragment = LexborHTMLParser(element_html(part))
    node = fragment.css_first(tag)
    if node is None:
        msg = f"Failed to build <{tag}> for part {part!r}"
        raise ValueError(msg)
    return node


def replace_text_node(leaf: LexborNode, parts: list[OutputPart]) -> bool:
    """Replace *leaf* in its parent by nodes mirroring *parts*.

    Returns False (leaving the tree untouched) if the leaf has been
    detached since it was collected.
    """
    if leaf.parent is None:
        logger.debug("Text node lost its parent before replacement; skipping")
        return False

    # Build every node first so a failure leaves the leaf in place
    replacements: list[str | LexborNode] = [
        part.content if part.kind == "text" else create_part_node(part)
        for part in parts
    ]
    for replacement in replacements:
        if isinstance(replacement, str) and not replacement:
            continue
        leaf.insert_before(replacement)
    leaf.decompose()
    return True


def process_text_node(
    leaf: LexborNode,
    pattern: re.Pattern[str],
    cache: ResultCache | None = None,
) -> bool:
    """Segment one text leaf and replace it if anything changed."""
    text = leaf.text_content or ""
    if not text.strip() or not needs_processing(text, pattern):
        return False

    parts = resolve_cache(cache).get(text, pattern)
    if not has_modifications(parts, text):
        return False

    logger.debug("Replacing text node: %r", text[:50])
    return replace_text_node(leaf, parts)


# ---------------------------------------------------------------------------
# Batch runner
# ---------------------------------------------------------------------------


def _iter_container(
    container: LexborNode,
    index: ExclusionIndex,
    pattern: re.Pattern[str],
    cache: ResultCache,
    stats: ProcessingStats,
    batch_size: int,
    batch_threshold: int,
) -> Iterator[None]:
    """Process one container, yielding between batches of leaves."""
    leaves = collect_text_leaves(container, index, pattern)
    stats.leaves_seen += len(leaves)
    if not leaves:
        return

    size = max(1, batch_size) if len(leaves) > batch_threshold else len(leaves)
    modified = False
    for start in range(0, len(leaves), size):
        if start:
            logger.debug("Batch boundary at leaf %d/%d", start, len(leaves))
            yield
        stats.batches += 1
        for leaf in leaves[start : start + size]:
            try:
                if process_text_node(leaf, pattern, cache):
                    modified = True
                    stats.leaves_modified += 1
            except Exception:
                stats.errors += 1
                logger.exception("Failed to rewrite text node")

    if modified:
        mark_as_processed(container)


def _collect_containers(
    root: Root, include: list[str], stats: ProcessingStats
) -> list[LexborNode]:
    containers: list[LexborNode] = []
    for selector in include:
        try:
            found = root.css(selector)
        except Exception as exc:
            stats.errors += 1
            logger.warning("Invalid selector %r: %s", selector, exc)
            continue
        if found:
            logger.debug("Found %d elements for selector %r", len(found), selector)
            containers.extend(found)
    return containers


def iter_process_root(
    root: Root,
    include: list[str],
    exclude: list[str],
    pattern: re.Pattern[str],
    stats: ProcessingStats,
    *,
    cache: ResultCache | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    batch_threshold: int = DEFAULT_BATCH_THRESHOLD,
) -> Iterator[None]:
    """Generator form of ``process_root``: yields at every batch boundary.

    Drivers decide what a yield means (a callback, an event-loop turn).
    """
    resolved_cache = resolve_cache(cache)
    index = ExclusionIndex(root, exclude)
    stats.errors += len(index.invalid)
    containers = _collect_containers(root, include, stats)
    logger.info("Processing %d candidate containers", len(containers))

    for container in containers:
        stats.containers += 1
        try:
            if is_processed(container) or is_excluded(container, index):
                stats.skipped += 1
                continue
            yield from _iter_container(
                container,
                index,
                pattern,
                resolved_cache,
                stats,
                batch_size,
                batch_threshold,
            )
        except Exception:
            stats.errors += 1
            logger.exception("Failed to process container <%s>", container.tag)


def process_root(
    root: Root,
    include: list[str],
    exclude: list[str],
    pattern: re.Pattern[str],
    *,
    cache: ResultCache | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    batch_threshold: int = DEFAULT_BATCH_THRESHOLD,
    yield_control: Callable[[], None] | None = None,
) -> ProcessingStats:
    """Rewrite every eligible text leaf under *root* in place.

    Args:
        root: Parsed document or any node within one.
        include: Selectors choosing candidate containers.
        exclude: Selectors whose matches (and their subtrees) are skipped.
        pattern: The Combined Pattern.
        cache: Result cache; defaults to the shared module cache.
        batch_size: Leaves per batch for containers above the threshold.
        batch_threshold: Leaf count above which a container is batched.
        yield_control: Called between batches. Defaults to a no-op, which
            makes the whole pass synchronous.

    Returns:
        Counters describing the pass.
    """
    stats = ProcessingStats()
    for _ in iter_process_root(
        root,
        include,
        exclude,
        pattern,
        stats,
        cache=cache,
        batch_size=batch_size,
        batch_threshold=batch_threshold,
    ):
        if yield_control is not None:
            yield_control()
    return stats


async def process_root_async(
    root: Root,
    include: list[str],
    exclude: list[str],
    pattern: re.Pattern[str],
    *,
    cache: ResultCache | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    batch_threshold: int = DEFAULT_BATCH_THRESHOLD,
) -> ProcessingStats:
    """Like ``process_root`` but gives the event loop a turn between batches."""
    stats = ProcessingStats()
    for _ in iter_process_root(
        root,
        include,
        exclude,
        pattern,
        stats,
        cache=cache,
        batch_size=batch_size,
        batch_threshold=batch_threshold,
    ):
        await asyncio.sleep(0)
    return stats


def _document_root(node: LexborNode) -> LexborNode:
    current = node
    while current.parent is not None:
        current = current.parent
    return current


def process_element(
    element: LexborNode,
    exclude: list[str],
    pattern: re.Pattern[str],
    cache: ResultCache | None = None,
) -> bool:
    """Process a single container synchronously.

    Returns True if any of its text leaves were rewritten.
    """
    index = ExclusionIndex(_document_root(element), exclude)
    if is_processed(element) or is_excluded(element, index):
        return False

    stats = ProcessingStats()
    for _ in _iter_container(
        element,
        index,
        pattern,
        resolve_cache(cache),
        stats,
        DEFAULT_BATCH_SIZE,
        DEFAULT_BATCH_THRESHOLD,
    ):
        pass
    return stats.leaves_modified > 0

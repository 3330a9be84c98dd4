"""High-level entry points binding configuration to the engine.

``SmartScript`` owns one compiled pattern set and one result cache for a
given ``Settings``. It exposes both processing modes (tree and string)
plus whole-document processing for server-side rendering.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING

from selectolax.lexbor import LexborHTMLParser

from smartscript.config import get_settings
from smartscript.engine.cache import ResultCache
from smartscript.engine.markup import PROCESSED_META_NAME
from smartscript.engine.patterns import compile_patterns
from smartscript.engine.rewriter import rewrite
from smartscript.engine.scheduling import DebouncedProcessor
from smartscript.engine.tree import (
    ProcessingStats,
    initialize_for_navigation,
    process_root,
    process_root_async,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from smartscript.config import Settings
    from smartscript.engine.patterns import CompiledPatternSet

logger = logging.getLogger(__name__)

_FULL_DOCUMENT = re.compile(r"<html[\s>]|<body[\s>]", re.IGNORECASE)
_BODY = re.compile(r"(<body\b[^>]*>)(.*)(</body\s*>)", re.IGNORECASE | re.DOTALL)
_HEAD_CLOSE = re.compile(r"</head\s*>", re.IGNORECASE)
_HTML_OPEN = re.compile(r"<html\b[^>]*>", re.IGNORECASE)
_PROCESSED_META = re.compile(
    rf"""<meta\s[^>]*name\s*=\s*["']?{re.escape(PROCESSED_META_NAME)}""",
    re.IGNORECASE,
)


def css_variables_block(variables: dict[str, str]) -> str:
    """Render ``--ss-*`` custom properties as a ``<style>`` block ('' if none)."""
    if not variables:
        return ""
    declarations = " ".join(
        f"--ss-{key}: {value};" for key, value in variables.items()
    )
    return f"<style>:root {{ {declarations} }}</style>"


def is_document_processed(html: str) -> bool:
    return _PROCESSED_META.search(html) is not None


def _inject_head(html: str, snippet: str) -> str:
    """Insert *snippet* at the end of ``<head>``, creating a spot if needed."""
    head_close = _HEAD_CLOSE.search(html)
    if head_close is not None:
        return html[: head_close.start()] + snippet + html[head_close.start() :]
    html_open = _HTML_OPEN.search(html)
    if html_open is not None:
        return html[: html_open.end()] + snippet + html[html_open.end() :]
    return snippet + html


class SmartScript:
    """Typography processor for one configuration.

    Args:
        settings: Configuration; defaults to ``get_settings()``.
        cache: Result cache; defaults to a private cache sized by
            ``settings.performance.cache_size``.
    """

    def __init__(
        self, settings: Settings | None = None, cache: ResultCache | None = None
    ) -> None:
        self.settings = settings if settings is not None else get_settings()
        self.cache = (
            cache
            if cache is not None
            else ResultCache(self.settings.performance.cache_size)
        )
        self.patterns: CompiledPatternSet = compile_patterns(self.settings)
        self.last_stats: ProcessingStats | None = None

    @property
    def pattern(self) -> re.Pattern[str]:
        """The Combined Pattern for the current settings."""
        return self.patterns.combined

    def reload(self, settings: Settings) -> None:
        """Swap in new settings, recompiling patterns and clearing the cache."""
        self.settings = settings
        self.patterns = compile_patterns(settings)
        self.cache.clear()
        logger.info(
            "SmartScript reloaded with %d categories", len(self.patterns.enabled)
        )

    def clear_cache(self) -> None:
        self.cache.clear()

    # -- Tree mode -----------------------------------------------------------

    def _server_processed(self, tree: LexborHTMLParser) -> bool:
        """True when a stamped page should not be processed again on the tree."""
        if not self.settings.ssr or self.settings.client:
            return False
        if tree.css_first(f'meta[name="{PROCESSED_META_NAME}"]') is None:
            return False
        logger.info("Content already processed server-side, skipping")
        return True

    def process_tree(
        self,
        tree: LexborHTMLParser,
        yield_control: Callable[[], None] | None = None,
    ) -> ProcessingStats:
        """Rewrite a parsed tree in place."""
        if not self.settings.enabled:
            logger.debug("Processing disabled; tree left untouched")
            return ProcessingStats()
        if self._server_processed(tree):
            return ProcessingStats()
        perf = self.settings.performance
        return process_root(
            tree,
            self.settings.selectors.include,
            self.settings.selectors.exclude,
            self.pattern,
            cache=self.cache,
            batch_size=perf.batch_size,
            batch_threshold=perf.batch_threshold,
            yield_control=yield_control,
        )

    async def process_tree_async(self, tree: LexborHTMLParser) -> ProcessingStats:
        """Rewrite a parsed tree in place, yielding to the loop between batches."""
        if not self.settings.enabled:
            return ProcessingStats()
        if self._server_processed(tree):
            return ProcessingStats()
        perf = self.settings.performance
        return await process_root_async(
            tree,
            self.settings.selectors.include,
            self.settings.selectors.exclude,
            self.pattern,
            cache=self.cache,
            batch_size=perf.batch_size,
            batch_threshold=perf.batch_threshold,
        )

    def debounced_processor(self, tree: LexborHTMLParser) -> DebouncedProcessor:
        """Coalesce change notifications for *tree* into one async pass.

        The quiet period is ``performance.debounce``. Each completed run
        stores its stats in ``last_stats``.
        """

        async def reprocess() -> None:
            self.last_stats = await self.process_tree_async(tree)

        return DebouncedProcessor(reprocess, self.settings.performance.debounce)

    async def start(self, tree: LexborHTMLParser) -> DebouncedProcessor:
        """Initial pass over a freshly loaded tree.

        Waits ``performance.delay`` milliseconds, processes *tree* once and
        returns a debouncer the host calls ``schedule()`` on after each
        content change.
        """
        await asyncio.sleep(self.settings.performance.delay / 1000)
        self.last_stats = await self.process_tree_async(tree)
        logger.debug("Initial pass: %s", self.last_stats)
        return self.debounced_processor(tree)

    def process_html(self, html: str) -> str:
        """Parse *html*, rewrite it in tree mode and serialise it back.

        Fragments come back as fragments; full documents as documents.
        """
        if not html or not self.settings.enabled:
            return html

        tree = LexborHTMLParser(html)
        self.last_stats = self.process_tree(tree)
        logger.debug("Tree pass: %s", self.last_stats)

        if _FULL_DOCUMENT.search(html):
            return tree.html or html
        body = tree.body
        if body is None:
            return html
        return body.inner_html or ""

    def navigate(self, tree: LexborHTMLParser) -> None:
        """Reset processed markers and the cache before re-processing."""
        initialize_for_navigation(tree, self.cache)

    # -- String mode ---------------------------------------------------------

    def rewrite_html(self, markup: str) -> str:
        """Rewrite an HTML string without building a tree."""
        if not markup or not self.settings.enabled:
            return markup
        exclusion = self.settings.exclusion
        return rewrite(
            markup,
            self.pattern,
            exclusion_tag_names=exclusion.tags,
            exclusion_attribute=exclusion.attribute,
            exclusion_class=exclusion.class_name,
            cache=self.cache,
        )

    def process_document(self, html: str) -> str:
        """Server-side pass over a complete rendered page.

        Rewrites only the ``<body>`` content (the whole string if there is
        no body), injects configured CSS variables, and stamps ``<head>``
        with a processed marker so a second call is a no-op.
        """
        if not self.settings.enabled or not self.settings.ssr:
            logger.debug("Document processing disabled via config")
            return html
        if is_document_processed(html):
            logger.debug("Document already processed, skipping")
            return html

        logger.info("Processing HTML document")
        try:
            body = _BODY.search(html)
            if body is None:
                result = self.rewrite_html(html)
            else:
                open_tag, content, close_tag = body.groups()
                result = (
                    html[: body.start()]
                    + open_tag
                    + self.rewrite_html(content)
                    + close_tag
                    + html[body.end() :]
                )

            head_snippet = css_variables_block(self.settings.css_variables)
            head_snippet += f'<meta name="{PROCESSED_META_NAME}" content="true">'
            return _inject_head(result, head_snippet)
        except Exception:
            logger.exception("Error processing HTML document")
            return html

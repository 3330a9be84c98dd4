"""Typography transformation engine: patterns, segmentation and rewriting."""

from smartscript.engine.cache import ResultCache, clear_cache, get_segments
from smartscript.engine.classifier import classify, process_match
from smartscript.engine.markup import CSS_CLASSES, PROCESSED_ATTRIBUTE
from smartscript.engine.parts import OutputPart
from smartscript.engine.patterns import Category, CompiledPatternSet, compile_patterns
from smartscript.engine.rewriter import rewrite, transform_text_to_html
from smartscript.engine.scheduling import DebouncedProcessor
from smartscript.engine.segmenter import needs_processing, segment
from smartscript.engine.tree import (
    ProcessingStats,
    initialize_for_navigation,
    process_element,
    process_root,
    process_root_async,
    reset_processing_flags,
)

__all__ = [
    "CSS_CLASSES",
    "PROCESSED_ATTRIBUTE",
    "Category",
    "CompiledPatternSet",
    "DebouncedProcessor",
    "OutputPart",
    "ProcessingStats",
    "ResultCache",
    "classify",
    "clear_cache",
    "compile_patterns",
    "get_segments",
    "initialize_for_navigation",
    "needs_processing",
    "process_element",
    "process_match",
    "process_root",
    "process_root_async",
    "reset_processing_flags",
    "rewrite",
    "segment",
    "transform_text_to_html",
]

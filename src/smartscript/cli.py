"""Apply typography transformations to an HTML file.

Usage:
    smartscript page.html                      # string mode, print to stdout
    smartscript page.html -o out.html --mode tree
    smartscript - --mode document < page.html  # read stdin
    smartscript page.html --disable chemicals math_sub
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from rich.console import Console

from smartscript import configure_logging
from smartscript.config import Settings, load_settings
from smartscript.document import SmartScript
from smartscript.engine.patterns import Category

console = Console(stderr=True)

MODES = ("string", "tree", "document")


def _with_disabled(settings: Settings, disabled: list[str]) -> Settings:
    """Return a copy of *settings* with the named categories switched off."""
    if not disabled:
        return settings
    transformations = settings.transformations.model_copy(
        update=dict.fromkeys(disabled, False)
    )
    return settings.model_copy(update={"transformations": transformations})


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _transform(engine: SmartScript, html: str, mode: str) -> str:
    match mode:
        case "tree":
            return engine.process_html(html)
        case "document":
            return engine.process_document(html)
        case _:
            return engine.rewrite_html(html)


def _print_summary(engine: SmartScript, mode: str, elapsed: float) -> None:
    console.print(f"SmartScript [bold]{mode}[/] pass complete:")
    console.print(f"  Categories:   {', '.join(engine.patterns.enabled) or 'none'}")
    console.print(f"  Cache hits:   {engine.cache.hits}")
    console.print(f"  Cache misses: {engine.cache.misses}")
    stats = engine.last_stats
    if stats is not None:
        console.print(f"  Containers:   {stats.containers} ({stats.skipped} skipped)")
        console.print(
            f"  Text nodes:   {stats.leaves_modified}/{stats.leaves_seen} rewritten"
        )
        if stats.errors:
            console.print(f"  [red]Errors:[/]       {stats.errors}")
    console.print(f"  Elapsed:      {elapsed * 1000:.1f} ms")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for file-level typography processing."""
    parser = argparse.ArgumentParser(
        description="Rewrite trademarks, ordinals, formulas and math notation "
        "in HTML as <sup>/<sub> markup.",
    )
    parser.add_argument("input", help="HTML file to process, or - for stdin.")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write the result here instead of stdout.",
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        default="string",
        help="string: rewrite serialised HTML (default); tree: parse and rewrite "
        "matching containers; document: full-page pass with head marker.",
    )
    parser.add_argument(
        "--disable",
        nargs="+",
        default=[],
        choices=[category.value for category in Category],
        metavar="CATEGORY",
        help="Categories to switch off.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Verbose logging to stderr.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print the summary.",
    )
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(debug=args.debug or settings.debug)

    try:
        html = _read_input(args.input)
    except OSError as exc:
        console.print(f"[red]Error:[/] cannot read {args.input}: {exc}")
        sys.exit(1)

    settings = _with_disabled(settings, args.disable)
    engine = SmartScript(settings)

    started = time.perf_counter()
    result = _transform(engine, html, args.mode)
    elapsed = time.perf_counter() - started

    if args.output is not None:
        args.output.write_text(result, encoding="utf-8")
    else:
        sys.stdout.write(result)

    if not args.quiet:
        _print_summary(engine, args.mode, elapsed)

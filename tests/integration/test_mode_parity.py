"""Tree-mode / string-mode parity on a realistic page.

Both modes must produce the same visible text for the same input, and
each must be stable when run over its own output.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from selectolax.lexbor import LexborHTMLParser

from smartscript.config import Settings
from smartscript.document import SmartScript

_FIXTURE = Path(__file__).parent.parent / "fixtures" / "article_typography.html"


def _main_text(html: str) -> str:
    """Visible text of the <main> element."""
    main = LexborHTMLParser(html).css_first("main")
    assert main is not None
    return main.text(deep=True)


@pytest.fixture
def page() -> str:
    return _FIXTURE.read_text(encoding="utf-8")


@pytest.fixture
def engine() -> SmartScript:
    return SmartScript(Settings(_env_file=None))  # type: ignore[call-arg]


class TestModeParity:
    """Both modes agree on the resulting text."""

    def test_same_visible_text(self, page: str, engine: SmartScript) -> None:
        """Tree and string output read the same."""
        tree_text = _main_text(engine.process_html(page))
        string_text = _main_text(engine.rewrite_html(page))

        assert tree_text == string_text
        assert tree_text != _main_text(page)

    def test_expected_replacements(self, page: str, engine: SmartScript) -> None:
        """Symbols are canonicalised and exclusions kept literal."""
        text = _main_text(engine.rewrite_html(page))

        assert "Acme™ and Widget®" in text
        assert "© 2024." in text
        assert "E=mc2," in text
        assert "x^2 and H2O stay literal here" in text
        assert "The 4th entry keeps H2O." in text
        assert "The 5th entry keeps x^2." in text
        assert "2st stay as typed" in text

    def test_exclusions_match(self, page: str, engine: SmartScript) -> None:
        """Excluded regions are byte-identical in both outputs."""
        for output in (engine.process_html(page), engine.rewrite_html(page)):
            assert "<pre>x^2 and H2O stay literal here</pre>" in output
            assert "<code>a_1</code>" in output
            assert "<p>The 4th entry keeps H2O.</p>" in output


class TestModeIdempotence:
    """Each mode is a no-op on its own output."""

    def test_tree_mode(self, page: str, engine: SmartScript) -> None:
        once = engine.process_html(page)
        assert engine.process_html(once) == once

    def test_string_mode(self, page: str, engine: SmartScript) -> None:
        once = engine.rewrite_html(page)
        assert engine.rewrite_html(once) == once

    def test_document_mode(self, page: str, engine: SmartScript) -> None:
        once = engine.process_document(page)
        assert engine.process_document(once) == once

    def test_tree_over_string_output(self, page: str, engine: SmartScript) -> None:
        """Tree mode leaves string-mode markup alone."""
        rewritten = engine.rewrite_html(page)
        reprocessed = engine.process_html(rewritten)

        assert _main_text(reprocessed) == _main_text(rewritten)
        assert engine.last_stats is not None
        assert engine.last_stats.leaves_modified == 0

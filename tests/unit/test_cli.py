"""Tests for the smartscript command-line entry point."""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

import pytest

from smartscript.cli import main

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

ST = '<sup class="ss-ordinal">st</sup>'


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """main() installs handlers on the package logger; drop them afterwards."""
    yield
    package_logger = logging.getLogger("smartscript")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def page(tmp_path: Path) -> Path:
    path = tmp_path / "page.html"
    path.write_text("<p>The 1st sample of H2O</p>", encoding="utf-8")
    return path


class TestMain:
    """main() argument handling and output."""

    def test_string_mode_to_stdout(
        self, page: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Default mode rewrites the string and prints it."""
        main([str(page), "--quiet"])

        out = capsys.readouterr().out
        assert out == (
            f'<p>The 1{ST} sample of H<sub class="ss-chemical">2</sub>O</p>'
        )

    def test_tree_mode_to_file(self, page: Path, tmp_path: Path) -> None:
        """--mode tree with --output writes the serialised tree."""
        target = tmp_path / "out.html"

        main([str(page), "-o", str(target), "--mode", "tree", "--quiet"])

        written = target.read_text(encoding="utf-8")
        assert 'aria-label="st">st</sup>' in written
        assert 'data-superscript-processed="true"' in written

    def test_document_mode_adds_marker(
        self, page: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """--mode document stamps the processed marker."""
        main([str(page), "--mode", "document", "--quiet"])

        assert 'name="smartscript-processed"' in capsys.readouterr().out

    def test_disable_categories(
        self, page: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """--disable switches the named categories off."""
        main([str(page), "--disable", "chemicals", "ordinals", "--quiet"])

        assert capsys.readouterr().out == "<p>The 1st sample of H2O</p>"

    def test_reads_stdin(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """- reads the document from standard input."""
        monkeypatch.setattr("sys.stdin", io.StringIO("<li>1st</li>"))

        main(["-", "--quiet"])

        assert capsys.readouterr().out == f"<li>1{ST}</li>"

    def test_summary_on_stderr(
        self, page: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Without --quiet a summary goes to stderr, not into the output."""
        main([str(page), "--mode", "tree"])

        captured = capsys.readouterr()
        assert "Cache misses" in captured.err
        assert "Text nodes" in captured.err
        assert "Cache misses" not in captured.out

    def test_missing_file_exits_1(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """An unreadable input is reported and exits with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "missing.html")])

        assert exc_info.value.code == 1
        assert "cannot read" in capsys.readouterr().err

    def test_unknown_category_rejected(self, page: Path) -> None:
        """argparse refuses categories that do not exist."""
        with pytest.raises(SystemExit) as exc_info:
            main([str(page), "--disable", "emoji"])

        assert exc_info.value.code == 2

    def test_debug_from_environment(
        self, page: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """SMARTSCRIPT_DEBUG turns on debug logging without --debug."""
        monkeypatch.setenv("SMARTSCRIPT_DEBUG", "true")

        main([str(page), "--quiet"])

        handlers = logging.getLogger("smartscript").handlers
        assert [handler.level for handler in handlers] == [logging.DEBUG]

    def test_info_logging_by_default(self, page: Path) -> None:
        """Without either switch the console stays at INFO."""
        main([str(page), "--quiet"])

        handlers = logging.getLogger("smartscript").handlers
        assert [handler.level for handler in handlers] == [logging.INFO]

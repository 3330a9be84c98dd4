"""Tests for generated-markup naming and rendering."""

from __future__ import annotations

import pytest

from smartscript.engine.markup import (
    CSS_CLASSES,
    PROCESSED_ATTRIBUTE,
    aria_label_for,
    element_classes,
    element_html,
    escape_html,
    is_generated_class,
    part_to_html,
    parts_to_html,
)
from smartscript.engine.parts import subscript, superscript, text


class TestNamingContract:
    """Class names and markers are part of the public contract."""

    def test_css_classes(self) -> None:
        """Every generated class uses the ss- prefix."""
        assert CSS_CLASSES == {
            "superscript": "ss-sup",
            "subscript": "ss-sub",
            "trademark": "ss-tm",
            "registered": "ss-reg",
            "ordinal": "ss-ordinal",
            "chemical": "ss-chemical",
            "math": "ss-math",
        }

    def test_processed_attribute(self) -> None:
        """The processed marker attribute name is fixed."""
        assert PROCESSED_ATTRIBUTE == "data-superscript-processed"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("ss-sup ss-tm", True),
            ("note ss-chemical", True),
            ("ss-custom", False),
            ("boss-tm", False),
            ("", False),
            (None, False),
        ],
    )
    def test_is_generated_class(self, value: str | None, expected: bool) -> None:
        """Only exact generated class tokens count."""
        assert is_generated_class(value) is expected


class TestTreeElements:
    """Classes and accessibility labels for tree-mode elements."""

    @pytest.mark.parametrize(
        ("part", "classes", "label"),
        [
            (superscript("™", "trademark"), "ss-sup ss-tm", "trademark"),
            (superscript("®", "registered"), "ss-sup ss-reg", "registered"),
            (superscript("nd", "ordinal"), "ss-sup ss-ordinal", "nd"),
            (superscript("n+1", "math"), "ss-sup ss-math", "superscript n+1"),
            (subscript("2", "chemical"), "ss-sub ss-chemical", "2"),
            (subscript("i", "math"), "ss-sub ss-math", "subscript i"),
        ],
    )
    def test_classes_and_labels(self, part: object, classes: str, label: str) -> None:
        """Each subtype gets its class pair and label."""
        assert element_classes(part) == classes  # type: ignore[arg-type]
        assert aria_label_for(part) == label  # type: ignore[arg-type]

    def test_element_html(self) -> None:
        """Content is escaped inside the element."""
        assert element_html(superscript("a<b", "math")) == (
            '<sup class="ss-sup ss-math" aria-label="superscript a&lt;b">'
            "a&lt;b</sup>"
        )


class TestStringRendering:
    """Inline markup for string mode."""

    def test_text_part_verbatim(self) -> None:
        """Text is emitted as-is, entities included."""
        assert part_to_html(text("AT&amp;T")) == "AT&amp;T"

    def test_trademark_span(self) -> None:
        """Trademark and registered marks render as spans."""
        assert part_to_html(superscript("™", "trademark")) == (
            '<span class="ss-tm">™</span>'
        )
        assert part_to_html(superscript("®", "registered")) == (
            '<span class="ss-reg">®</span>'
        )

    def test_sup_and_sub(self) -> None:
        """Other parts render as sup/sub with their subtype class."""
        assert part_to_html(superscript("st", "ordinal")) == (
            '<sup class="ss-ordinal">st</sup>'
        )
        assert part_to_html(subscript("2", "chemical")) == (
            '<sub class="ss-chemical">2</sub>'
        )

    def test_parts_to_html(self) -> None:
        """A segmentation renders in order."""
        parts = [text("H"), subscript("2", "chemical"), text("O")]
        assert parts_to_html(parts) == 'H<sub class="ss-chemical">2</sub>O'


class TestEscapeHtml:
    """Minimal escaping without double-escaping."""

    def test_escapes_special_characters(self) -> None:
        """& < > and double quotes are escaped."""
        assert escape_html('a<b>"c" & d') == "a&lt;b&gt;&quot;c&quot; &amp; d"

    def test_apostrophe_kept(self) -> None:
        """Apostrophes are safe in content."""
        assert escape_html("it's") == "it's"

    def test_existing_entity_not_double_escaped(self) -> None:
        """An existing entity passes through."""
        assert escape_html("&amp; &#169;") == "&amp; &#169;"

    def test_generated_markup_passes_through(self) -> None:
        """Previously generated output is not escaped again."""
        markup = '<sup class="ss-ordinal">st</sup>'
        assert escape_html(markup) == markup

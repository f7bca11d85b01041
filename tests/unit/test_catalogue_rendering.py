"""Unit tests for Markdown decoding and rendering."""

from __future__ import annotations

import json

from gruv.catalogue import MarkdownRenderer, decode_markdown


def test_decode_markdown_replaces_invalid_bytes() -> None:
    """Invalid UTF-8 becomes U+FFFD and the text stays JSON-encodable."""
    text = decode_markdown(b"# Report\n\nBinary: \xc3\x28 and \xff\n")
    assert "\ufffd" in text
    assert text.startswith("# Report")
    json.dumps({"markdown": text})


def test_decode_markdown_drops_byte_order_mark() -> None:
    """A UTF-8 BOM is not part of the report text."""
    assert decode_markdown("\ufeff# Title".encode()) == "# Title"


class TestMarkdownRenderer:
    """Tests for ``MarkdownRenderer``."""

    def test_renders_headings_and_tables(self) -> None:
        """Headings and GitHub-style tables become HTML."""
        html = MarkdownRenderer().render(
            "# Weekly update\n\n| Area | Status |\n| --- | --- |\n| CI | green |\n"
        )
        assert "<h1" in html
        assert "Weekly update" in html
        assert "<table>" in html
        assert "<td>green</td>" in html

    def test_renders_strikethrough(self) -> None:
        """Strikethrough syntax is enabled."""
        assert "<del>gone</del>" in MarkdownRenderer().render("~~gone~~")

    def test_hard_wrap_turns_newlines_into_breaks(self) -> None:
        """Single newlines become line breaks by default."""
        assert "<br" in MarkdownRenderer().render("line one\nline two")
        assert "<br" not in MarkdownRenderer(hard_wrap=False).render(
            "line one\nline two"
        )

"""Markdown decoding and HTML rendering for stored summaries.

Report files come from an external generator and occasionally contain byte
sequences that are not valid UTF-8. :func:`decode_markdown` replaces them so
the text always survives JSON encoding, and :class:`MarkdownRenderer` turns
the cleaned text into HTML with mistune.
"""

from __future__ import annotations

import typing as typ

import mistune

_PLUGINS: tuple[str, ...] = (
    "table",
    "strikethrough",
    "footnotes",
    "url",
    "mark",
    "insert",
    "task_lists",
)


def decode_markdown(raw: bytes) -> str:
    """Decode report bytes as UTF-8, replacing invalid sequences.

    A leading byte-order mark is dropped.

    Examples
    --------
    >>> "\\ufffd" in decode_markdown(b"Binary: \\xc3\\x28")
    True

    """
    return raw.decode("utf-8-sig", errors="replace")


class MarkdownRenderer:
    """Render Markdown to HTML.

    Parameters
    ----------
    hard_wrap
        Treat single newlines as line breaks, matching how generated reports
        are laid out.

    """

    def __init__(self, *, hard_wrap: bool = True) -> None:
        """Build the mistune pipeline once; it is reused for every render."""
        self._markdown = mistune.create_markdown(
            escape=False,
            hard_wrap=hard_wrap,
            plugins=list(_PLUGINS),
        )

    def render(self, markdown: str) -> str:
        """Return the HTML rendering of *markdown*."""
        html = self._markdown(markdown)
        return typ.cast("str", html)

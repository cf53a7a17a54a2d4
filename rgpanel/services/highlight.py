"""
Pattern highlighting for displayed search lines.

Matched lines are split into plain and emphasized segments wherever the
search pattern occurs, compared case-insensitively and always as a literal
string. Context lines are returned untouched.
"""

from __future__ import annotations

import logging

from rgpanel.models.search import Segment, SegmentKind

logger = logging.getLogger(__name__)


def _fold_with_offsets(text: str) -> tuple[str, dict[int, int]]:
    """
    Case-fold text and map folded offsets back to original offsets.

    Folding can change length ("ß" becomes "ss"), so every original
    character boundary is recorded by its position in the folded string.
    The end of the text is recorded too.
    """
    parts: list[str] = []
    boundaries: dict[int, int] = {}
    position = 0
    for index, char in enumerate(text):
        boundaries[position] = index
        folded = char.casefold()
        parts.append(folded)
        position += len(folded)
    boundaries[position] = len(text)
    return "".join(parts), boundaries


def _split(text: str, pattern: str) -> list[Segment]:
    folded_text, boundaries = _fold_with_offsets(text)
    needle = pattern.casefold()

    segments: list[Segment] = []
    cursor = 0
    search_from = 0
    while True:
        hit = folded_text.find(needle, search_from)
        if hit == -1:
            break

        end = hit + len(needle)
        # Hits inside a multi-character fold do not correspond to original text
        if hit not in boundaries or end not in boundaries:
            search_from = hit + 1
            continue

        start_index = boundaries[hit]
        end_index = boundaries[end]
        if start_index > cursor:
            segments.append(Segment(kind=SegmentKind.PLAIN, text=text[cursor:start_index]))
        segments.append(Segment(kind=SegmentKind.EMPHASIZED, text=text[start_index:end_index]))
        cursor = end_index
        search_from = end

    if cursor < len(text) or not segments:
        segments.append(Segment(kind=SegmentKind.PLAIN, text=text[cursor:]))

    return segments


def highlight(text: str, pattern: str, is_match_line: bool) -> list[Segment]:
    """
    Split a line into plain and emphasized segments.

    Args:
        text: Line content
        pattern: Literal search pattern; never interpreted as regex syntax
        is_match_line: Whether the line is itself a match. Context lines are
            never highlighted, even when they contain the pattern.

    Returns:
        Segments whose texts concatenate back to ``text``. Matches keep the
        casing they have in ``text``.
    """
    if not is_match_line or not pattern:
        return [Segment(kind=SegmentKind.PLAIN, text=text)]

    try:
        return _split(text, pattern)
    except Exception:
        logger.warning(
            "Highlighting failed, showing plain text",
            exc_info=True,
            extra={
                "text_length": len(text),
                "pattern_length": len(pattern),
            },
        )
        return [Segment(kind=SegmentKind.PLAIN, text=text)]


class HighlightEngine:
    """Stateless highlighter, injectable where a service object is expected."""

    def highlight(self, text: str, pattern: str, is_match_line: bool) -> list[Segment]:
        return highlight(text, pattern, is_match_line)

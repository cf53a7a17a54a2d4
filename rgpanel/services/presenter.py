"""Turns match groups into highlighted, display-ready groups."""

from __future__ import annotations

from collections.abc import Sequence

from rgpanel.models.search import MatchGroup, RenderedGroup, RenderedLine, SegmentKind
from rgpanel.services.highlight import highlight


def render_groups(groups: Sequence[MatchGroup], pattern: str) -> list[RenderedGroup]:
    """Highlight the pattern in every matched line of every group."""
    return [
        RenderedGroup(
            path=group.path,
            anchor_line_number=group.anchor_line_number,
            header=f"{group.path}:{group.anchor_line_number}",
            lines=[
                RenderedLine(
                    line_number=line.line_number,
                    is_match=line.is_match,
                    segments=highlight(line.content, pattern, line.is_match),
                )
                for line in group.lines
            ],
        )
        for group in groups
    ]


def render_text(rendered: Sequence[RenderedGroup]) -> str:
    """
    Plain-text rendering for terminals and logs.

    Emphasized text is wrapped in square brackets; groups are separated by
    a blank line.
    """
    blocks: list[str] = []
    for group in rendered:
        width = len(str(max(line.line_number for line in group.lines))) if group.lines else 1
        rows = [group.header]
        for line in group.lines:
            marker = ":" if line.is_match else "-"
            body = "".join(
                f"[{segment.text}]" if segment.kind == SegmentKind.EMPHASIZED else segment.text
                for segment in line.segments
            )
            rows.append(f"{line.line_number:>{width}}{marker} {body}")
        blocks.append("\n".join(rows))
    return "\n\n".join(blocks)

"""
Grouping of flat search lines into per-match display groups.

Every matched line becomes one group holding the lines of the same file
that lie within the context window around it. Windows of nearby matches
are not merged by default, so a line can appear in two consecutive groups,
the way grep-style tools print one block per hit.
"""

from __future__ import annotations

from collections.abc import Sequence

from rgpanel.models.search import LineRecord, MatchGroup, MatchLine


def _partition_by_path(records: Sequence[LineRecord]) -> dict[str, list[LineRecord]]:
    """Records per path, paths in first-seen order, lines ascending."""
    by_path: dict[str, list[LineRecord]] = {}
    for record in records:
        by_path.setdefault(record.path, []).append(record)

    for path_records in by_path.values():
        # list.sort is stable, so duplicate line numbers keep their input order
        path_records.sort(key=lambda record: record.line_number)

    return by_path


def _window(path_records: list[LineRecord], anchor: int, context_window: int) -> list[MatchLine]:
    return [
        MatchLine(
            line_number=record.line_number,
            content=record.content,
            is_match=record.is_match,
        )
        for record in path_records
        if abs(record.line_number - anchor) <= context_window
    ]


def _merge_runs(groups: list[MatchGroup], context_window: int) -> list[MatchGroup]:
    """Combine consecutive same-file groups whose windows overlap or touch."""
    merged: list[MatchGroup] = []
    for group in groups:
        previous = merged[-1] if merged else None
        if previous is not None and previous.path == group.path:
            # Every matched line in a window is itself an anchor
            last_anchor = max(line.line_number for line in previous.lines if line.is_match)
            if group.anchor_line_number - context_window <= last_anchor + context_window + 1:
                seen = {line.line_number for line in previous.lines}
                lines = list(previous.lines)
                lines.extend(line for line in group.lines if line.line_number not in seen)
                merged[-1] = MatchGroup(
                    path=previous.path,
                    anchor_line_number=previous.anchor_line_number,
                    lines=sorted(lines, key=lambda line: line.line_number),
                )
                continue
        merged.append(group)
    return merged


def aggregate(
    records: Sequence[LineRecord],
    context_window: int,
    merge_overlapping: bool = False,
) -> list[MatchGroup]:
    """
    Build one match group per matched line.

    Args:
        records: Line records from one search, treated as immutable
        context_window: Lines before and after a match to include. Pass the
            window that was in effect for the completed search, not an
            option still being edited.
        merge_overlapping: Combine consecutive groups of the same file whose
            windows overlap or touch into one group anchored at the first
            match. Off by default.

    Returns:
        Groups ordered by the first appearance of their file in ``records``,
        then by anchor line number.

    Raises:
        ValueError: If ``context_window`` is negative
    """
    if context_window < 0:
        msg = f"context_window must be >= 0, got {context_window}"
        raise ValueError(msg)

    groups: list[MatchGroup] = []
    for path, path_records in _partition_by_path(records).items():
        for record in path_records:
            if not record.is_match:
                continue
            groups.append(
                MatchGroup(
                    path=path,
                    anchor_line_number=record.line_number,
                    lines=_window(path_records, record.line_number, context_window),
                )
            )

    if merge_overlapping:
        return _merge_runs(groups, context_window)
    return groups


class ResultAggregator:
    """Stateless aggregator, injectable where a service object is expected."""

    def aggregate(
        self,
        records: Sequence[LineRecord],
        context_window: int,
        merge_overlapping: bool = False,
    ) -> list[MatchGroup]:
        return aggregate(records, context_window, merge_overlapping=merge_overlapping)

"""
Search session state.

A session keeps two things apart: the options being edited for the next
search, and a frozen snapshot of the last completed search. Display always
works from the snapshot, so editing options (including context_lines)
never changes what is currently shown until the next search completes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from rgpanel.exceptions import RgPanelError, SearchInProgressError
from rgpanel.models.search import (
    MAX_CONTEXT_LINES,
    MIN_CONTEXT_LINES,
    LineRecord,
    MatchGroup,
    RenderedGroup,
    SearchOptions,
)
from rgpanel.services.aggregator import aggregate
from rgpanel.services.options import apply_option_edit, parse_bounded_int
from rgpanel.services.presenter import render_groups, render_text

if TYPE_CHECKING:
    from rgpanel.services.ripgrep import RipgrepSearchService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletedSearch:
    """Everything about a finished search that display depends on."""

    options: SearchOptions
    records: tuple[LineRecord, ...]
    context_lines: int
    duration_ms: int
    completed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def match_count(self) -> int:
        return sum(1 for record in self.records if record.is_match)


class SearchSession:
    """Staged options, the last completed search, and how it is displayed."""

    def __init__(
        self,
        search_service: RipgrepSearchService,
        initial_options: SearchOptions | None = None,
    ) -> None:
        self.search_service = search_service
        self._staged = initial_options or SearchOptions()
        self._completed: CompletedSearch | None = None
        self._display_context: int | None = None
        self._last_error: str | None = None
        self._lock = asyncio.Lock()

    @property
    def staged(self) -> SearchOptions:
        return self._staged

    @property
    def completed(self) -> CompletedSearch | None:
        return self._completed

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    def edit(self, field_name: str, raw: object) -> SearchOptions:
        """Change one staged option; the displayed results are not affected."""
        self._staged = apply_option_edit(self._staged, field_name, raw)
        return self._staged

    def replace(self, options: SearchOptions) -> SearchOptions:
        self._staged = options
        return self._staged

    async def run(self, options: SearchOptions | None = None) -> CompletedSearch:
        """
        Run a search with the given options, or the staged ones.

        The previous results are discarded as soon as the search starts.
        On failure the error text is kept in ``last_error`` and the
        exception is re-raised.

        Raises:
            SearchInProgressError: If another search is still running
        """
        if self._lock.locked():
            msg = "A search is already in progress"
            raise SearchInProgressError(msg)

        async with self._lock:
            if options is not None:
                self._staged = options
            submitted = self._staged

            self._completed = None
            self._display_context = None
            self._last_error = None

            start_time = time.monotonic()
            try:
                records = await self.search_service.search(submitted)
            except (RgPanelError, OSError) as exc:
                self._last_error = str(exc)
                raise
            duration_ms = int((time.monotonic() - start_time) * 1000)

            self._completed = CompletedSearch(
                options=submitted,
                records=tuple(records),
                context_lines=submitted.context_lines,
                duration_ms=duration_ms,
            )

        logger.info(
            "Search session updated",
            extra={
                "record_count": len(self._completed.records),
                "match_count": self._completed.match_count,
                "context_lines": self._completed.context_lines,
                "duration_ms": duration_ms,
            },
        )
        return self._completed

    @property
    def display_context(self) -> int:
        """Window used for display; defaults to the one the search ran with."""
        if self._display_context is not None:
            return self._display_context
        if self._completed is not None:
            return self._completed.context_lines
        return self._staged.context_lines

    def set_display_context(self, raw: object) -> int:
        self._display_context = parse_bounded_int(
            raw,
            MIN_CONTEXT_LINES,
            MAX_CONTEXT_LINES,
            "context_lines",
        )
        return self._display_context

    def groups(self, merge_overlapping: bool = False) -> list[MatchGroup]:
        if self._completed is None:
            return []
        return aggregate(
            self._completed.records,
            self.display_context,
            merge_overlapping=merge_overlapping,
        )

    def render(self, merge_overlapping: bool = False) -> list[RenderedGroup]:
        if self._completed is None:
            return []
        rendered = render_groups(
            self.groups(merge_overlapping=merge_overlapping),
            self._completed.options.pattern,
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Rendered search results\n%s",
                render_text(rendered),
                extra={"group_count": len(rendered)},
            )
        return rendered

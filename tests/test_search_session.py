"""Tests for SearchSession: staged options versus the displayed search."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from rgpanel.exceptions import SearchError, SearchInProgressError, ValidationError
from rgpanel.models.search import LineRecord, SearchOptions, SegmentKind
from rgpanel.services.container import init_container
from rgpanel.services.session import SearchSession


def _records() -> list[LineRecord]:
    matches = {10, 12}
    return [
        LineRecord(
            path="a.txt",
            line_number=n,
            content=f"line {n} Needle" if n in matches else f"line {n}",
            is_match=n in matches,
        )
        for n in range(8, 15)
    ]


@pytest.fixture
def search_service() -> AsyncMock:
    service = AsyncMock()
    service.search = AsyncMock(return_value=_records())
    return service


@pytest.fixture
def session(search_service: AsyncMock) -> SearchSession:
    return SearchSession(search_service=search_service)


async def test_no_groups_before_first_search(session: SearchSession) -> None:
    assert session.completed is None
    assert session.groups() == []
    assert session.render() == []


async def test_run_uses_staged_options(session: SearchSession, search_service: AsyncMock) -> None:
    session.edit("pattern", "needle")
    session.edit("context_lines", "1")

    completed = await session.run()

    search_service.search.assert_awaited_once_with(session.staged)
    assert completed.context_lines == 1
    assert completed.match_count == 2
    assert [g.anchor_line_number for g in session.groups()] == [10, 12]


async def test_editing_context_after_search_does_not_change_display(session: SearchSession) -> None:
    await session.run(SearchOptions(pattern="needle", context_lines=1))

    session.edit("context_lines", 5)

    assert session.staged.context_lines == 5
    assert session.display_context == 1
    assert [line.line_number for line in session.groups()[0].lines] == [9, 10, 11]


async def test_display_context_can_be_changed_explicitly(session: SearchSession) -> None:
    await session.run(SearchOptions(pattern="needle", context_lines=1))

    assert session.set_display_context("0") == 0
    assert [len(group.lines) for group in session.groups()] == [1, 1]

    assert session.set_display_context(50) == 10


async def test_display_context_rejects_non_numeric(session: SearchSession) -> None:
    await session.run(SearchOptions(pattern="needle", context_lines=1))

    with pytest.raises(ValidationError):
        session.set_display_context("wide")

    assert session.display_context == 1


async def test_new_search_resets_display_context(session: SearchSession) -> None:
    await session.run(SearchOptions(pattern="needle", context_lines=1))
    session.set_display_context(0)

    await session.run(SearchOptions(pattern="needle", context_lines=2))

    assert session.display_context == 2


async def test_render_highlights_only_match_lines(session: SearchSession) -> None:
    await session.run(SearchOptions(pattern="needle", context_lines=1))

    rendered = session.render()

    first = rendered[0]
    assert first.header == "a.txt:10"
    match_line = next(line for line in first.lines if line.is_match)
    assert [(s.kind, s.text) for s in match_line.segments] == [
        (SegmentKind.PLAIN, "line 10 "),
        (SegmentKind.EMPHASIZED, "Needle"),
    ]
    for line in first.lines:
        if not line.is_match:
            assert [s.kind for s in line.segments] == [SegmentKind.PLAIN]


async def test_search_error_is_kept_verbatim(session: SearchSession, search_service: AsyncMock) -> None:
    await session.run(SearchOptions(pattern="needle"))
    search_service.search.side_effect = SearchError("regex parse error:\n    (\n    ^", context={"exit_code": 2})

    with pytest.raises(SearchError):
        await session.run(SearchOptions(pattern="(", regex=True))

    assert session.last_error == "regex parse error:\n    (\n    ^"
    assert session.completed is None
    assert session.groups() == []


async def test_successful_search_clears_error(session: SearchSession, search_service: AsyncMock) -> None:
    search_service.search.side_effect = SearchError("boom")
    with pytest.raises(SearchError):
        await session.run(SearchOptions(pattern="x"))

    search_service.search.side_effect = None
    await session.run(SearchOptions(pattern="needle"))

    assert session.last_error is None
    assert session.completed is not None


async def test_only_one_search_in_flight(search_service: AsyncMock) -> None:
    release = asyncio.Event()

    async def slow_search(options: SearchOptions) -> list[LineRecord]:
        await release.wait()
        return _records()

    search_service.search = AsyncMock(side_effect=slow_search)
    session = SearchSession(search_service=search_service)

    first = asyncio.create_task(session.run(SearchOptions(pattern="needle")))
    await asyncio.sleep(0)
    assert session.in_progress

    with pytest.raises(SearchInProgressError):
        await session.run(SearchOptions(pattern="other"))

    release.set()
    completed = await first
    assert completed.options.pattern == "needle"
    assert not session.in_progress


async def test_records_snapshot_is_immutable(session: SearchSession, search_service: AsyncMock) -> None:
    returned = _records()
    search_service.search.return_value = returned

    completed = await session.run(SearchOptions(pattern="needle"))
    returned.clear()

    assert len(completed.records) == 7


async def test_replace_stages_options_without_running(session: SearchSession, search_service: AsyncMock) -> None:
    options = SearchOptions(pattern="staged", max_depth=2)

    assert session.replace(options) is options
    assert session.staged.pattern == "staged"
    search_service.search.assert_not_awaited()


async def test_os_error_is_kept_as_last_error(session: SearchSession, search_service: AsyncMock) -> None:
    search_service.search.side_effect = PermissionError(13, "Permission denied", "rg")

    with pytest.raises(PermissionError):
        await session.run(SearchOptions(pattern="needle"))

    assert session.last_error == "[Errno 13] Permission denied: 'rg'"
    assert session.completed is None


async def test_completed_search_records_finish_time(session: SearchSession) -> None:
    before = datetime.now(UTC)
    completed = await session.run(SearchOptions(pattern="needle"))

    assert before <= completed.completed_at <= datetime.now(UTC)


async def test_render_logs_text_view_at_debug(session: SearchSession, caplog: pytest.LogCaptureFixture) -> None:
    await session.run(SearchOptions(pattern="needle", context_lines=0))

    with caplog.at_level(logging.DEBUG, logger="rgpanel.services.session"):
        session.render()

    record = next(r for r in caplog.records if r.getMessage().startswith("Rendered search results"))
    assert record.group_count == 2
    assert "a.txt:10\n10: line 10 [Needle]" in record.getMessage()


async def test_container_session_runs_through_given_service(search_service: AsyncMock) -> None:
    container = init_container(search_service=search_service)

    await container.search_session.run(SearchOptions(pattern="needle"))

    search_service.search.assert_awaited_once()
    assert not hasattr(container, "search_service")

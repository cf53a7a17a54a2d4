"""Search API endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from rgpanel.dependencies import get_search_session, verify_token
from rgpanel.exceptions import SearchError, SearchInProgressError, ValidationError
from rgpanel.models.search import OptionEdit, SearchOptions, SearchResultsResponse
from rgpanel.utils.error_handling import format_exception_for_response

if TYPE_CHECKING:
    from rgpanel.services.session import SearchSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/search", tags=["search"], dependencies=[Depends(verify_token)])


def _results_response(session: SearchSession, merge_overlapping: bool) -> SearchResultsResponse:
    completed = session.completed
    if completed is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "NoCompletedSearch",
                "message": session.last_error or "No completed search",
            },
        )

    return SearchResultsResponse(
        pattern=completed.options.pattern,
        context_lines=session.display_context,
        total_records=len(completed.records),
        total_matches=completed.match_count,
        groups=session.render(merge_overlapping=merge_overlapping),
        duration_ms=completed.duration_ms,
        completed_at=completed.completed_at,
    )


@router.post("", response_model=SearchResultsResponse)
async def run_search(
    options: SearchOptions,
    merge: Annotated[
        bool,
        Query(description="Merge overlapping context windows"),
    ] = False,
    session: SearchSession = Depends(get_search_session),
) -> SearchResultsResponse:
    """Run a search and return highlighted match groups."""
    pattern_length = len(options.pattern)

    try:
        await session.run(options)
    except SearchInProgressError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=format_exception_for_response(exc),
        ) from exc
    except ValidationError as exc:
        logger.warning(
            "Invalid search request",
            extra={
                "pattern_length": pattern_length,
                "directory": options.directory,
                "field": exc.context.get("field"),
            },
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=format_exception_for_response(exc),
        ) from exc
    except FileNotFoundError as exc:
        logger.info(
            "Search directory not found",
            extra={"directory": options.directory},
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Directory not found",
        ) from exc
    except SearchError as exc:
        logger.warning(
            "Search engine reported an error",
            extra={
                "pattern_length": pattern_length,
                "directory": options.directory,
                **exc.context,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=format_exception_for_response(exc),
        ) from exc

    return _results_response(session, merge)


@router.get("/results", response_model=SearchResultsResponse)
async def get_results(
    context: Annotated[
        str | None,
        Query(description="Display context window, clamped to 0..10"),
    ] = None,
    merge: Annotated[
        bool,
        Query(description="Merge overlapping context windows"),
    ] = False,
    session: SearchSession = Depends(get_search_session),
) -> SearchResultsResponse:
    """Redisplay the last completed search without running it again."""
    if context is not None:
        try:
            session.set_display_context(context)
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=format_exception_for_response(exc),
            ) from exc

    return _results_response(session, merge)


@router.get("/options", response_model=SearchOptions)
async def get_options(
    session: SearchSession = Depends(get_search_session),
) -> SearchOptions:
    """Options staged for the next search."""
    return session.staged


@router.patch("/options", response_model=SearchOptions)
async def edit_option(
    edit: OptionEdit,
    session: SearchSession = Depends(get_search_session),
) -> SearchOptions:
    """Edit one staged option. Results already displayed are unaffected."""
    try:
        return session.edit(edit.field, edit.value)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=format_exception_for_response(exc),
        ) from exc

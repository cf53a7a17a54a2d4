"""Models for rg-panel."""

from rgpanel.models.search import (
    LineRecord,
    MatchGroup,
    MatchLine,
    OptionEdit,
    RenderedGroup,
    RenderedLine,
    SearchOptions,
    SearchResultsResponse,
    Segment,
    SegmentKind,
)

__all__ = [
    "LineRecord",
    "MatchGroup",
    "MatchLine",
    "OptionEdit",
    "RenderedGroup",
    "RenderedLine",
    "SearchOptions",
    "SearchResultsResponse",
    "Segment",
    "SegmentKind",
]

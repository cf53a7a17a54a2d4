"""Models for search options, line records and rendered match groups."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

MIN_MAX_DEPTH = 1
MAX_MAX_DEPTH = 10
MIN_CONTEXT_LINES = 0
MAX_CONTEXT_LINES = 10


class SearchOptions(BaseModel):
    """Options for one search, handed to the search engine as a single request."""

    model_config = ConfigDict(frozen=True)

    pattern: str = Field("", description="Search pattern")
    directory: str = Field(".", description="Directory to search, relative to the search root")
    case_sensitive: bool = Field(False, description="Use case-sensitive matching")
    search_hidden: bool = Field(False, description="Include hidden and ignored files")
    max_depth: int = Field(
        MAX_MAX_DEPTH,
        ge=MIN_MAX_DEPTH,
        le=MAX_MAX_DEPTH,
        description="Maximum directory depth",
    )
    file_type: str = Field("", description="Ripgrep file type filter (e.g. 'py')")
    include_globs: list[str] = Field(default_factory=list, description="Globs files must match")
    exclude_globs: list[str] = Field(default_factory=list, description="Globs files must not match")
    context_lines: int = Field(
        2,
        ge=MIN_CONTEXT_LINES,
        le=MAX_CONTEXT_LINES,
        description="Context lines around matches",
    )
    regex: bool = Field(False, description="Treat pattern as a regex instead of a literal")


class LineRecord(BaseModel):
    """One line reported by the search engine."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path of the file the line belongs to")
    line_number: int = Field(..., ge=0, description="1-based line number")
    content: str = Field(..., description="Line text without its line terminator")
    is_match: bool = Field(..., description="Whether the line matched the pattern")


class MatchLine(BaseModel):
    """A line inside a match group."""

    model_config = ConfigDict(frozen=True)

    line_number: int
    content: str
    is_match: bool


class MatchGroup(BaseModel):
    """A matched line together with its context lines from the same file."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="File path shared by every line in the group")
    anchor_line_number: int = Field(..., description="Line number of the match")
    lines: list[MatchLine] = Field(..., description="Window around the match, ascending")


class SegmentKind(str, Enum):
    """How a run of text is displayed."""

    PLAIN = "plain"
    EMPHASIZED = "emphasized"


class Segment(BaseModel):
    """A contiguous run of text, either plain or emphasized."""

    model_config = ConfigDict(frozen=True)

    kind: SegmentKind
    text: str


class RenderedLine(BaseModel):
    """A group line split into display segments."""

    line_number: int
    is_match: bool
    segments: list[Segment]


class RenderedGroup(BaseModel):
    """A match group ready for display."""

    path: str
    anchor_line_number: int
    header: str = Field(..., description="'path:line' heading for the group")
    lines: list[RenderedLine]


class OptionEdit(BaseModel):
    """Request body for editing a single staged option."""

    field: str = Field(..., description="SearchOptions field name")
    value: str | int | bool | list[str] | None = Field(..., description="Raw value as entered")


class SearchResultsResponse(BaseModel):
    """Response payload for a completed search."""

    pattern: str = Field(..., description="Pattern the search ran with")
    context_lines: int = Field(..., description="Context window used for display")
    total_records: int = Field(..., description="Lines returned by the engine")
    total_matches: int = Field(..., description="Matched lines, one group each")
    groups: list[RenderedGroup] = Field(..., description="Highlighted match groups")
    duration_ms: int = Field(..., description="Search duration in milliseconds")
    completed_at: datetime = Field(..., description="When the search finished (UTC)")

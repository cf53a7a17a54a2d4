"""Tests for pattern highlighting."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from rgpanel.models.search import Segment, SegmentKind
from rgpanel.services.highlight import HighlightEngine, highlight

PLAIN = SegmentKind.PLAIN
EMPHASIZED = SegmentKind.EMPHASIZED


def _pairs(segments: list[Segment]) -> list[tuple[SegmentKind, str]]:
    return [(segment.kind, segment.text) for segment in segments]


def test_context_line_is_never_highlighted() -> None:
    """Context lines come back as one plain segment even if they contain the pattern."""
    segments = highlight("needle in a haystack", "needle", is_match_line=False)

    assert _pairs(segments) == [(PLAIN, "needle in a haystack")]


def test_empty_pattern_returns_plain_text() -> None:
    segments = highlight("anything at all", "", is_match_line=True)

    assert _pairs(segments) == [(PLAIN, "anything at all")]


def test_case_insensitive_match_keeps_original_casing() -> None:
    segments = highlight("Hello World", "hello", is_match_line=True)

    assert _pairs(segments) == [(EMPHASIZED, "Hello"), (PLAIN, " World")]


def test_multiple_occurrences_alternate_segments() -> None:
    segments = highlight("foo bar FOO baz Foo", "foo", is_match_line=True)

    assert _pairs(segments) == [
        (EMPHASIZED, "foo"),
        (PLAIN, " bar "),
        (EMPHASIZED, "FOO"),
        (PLAIN, " baz "),
        (EMPHASIZED, "Foo"),
    ]


def test_occurrences_are_not_overlapping() -> None:
    """Scanning resumes after each hit, so 'aaaa' holds two 'aa' matches, not three."""
    segments = highlight("aaaa", "aa", is_match_line=True)

    assert _pairs(segments) == [(EMPHASIZED, "aa"), (EMPHASIZED, "aa")]


def test_regex_metacharacters_are_literal() -> None:
    segments = highlight("cost: $5.00", "$5.00", is_match_line=True)

    assert _pairs(segments) == [(PLAIN, "cost: "), (EMPHASIZED, "$5.00")]


@pytest.mark.parametrize(
    "pattern",
    [".", "*", "+", "(", ")", "[", "]", "\\", "$", "^", "|", "?", "{", "}", "a.*b", "(?P<x>", "[^]"],
)
def test_special_characters_never_fail(pattern: str) -> None:
    text = "prefix a.*b (?P<x> () [^] \\ $ ^ | ? {} + suffix"

    segments = highlight(text, pattern, is_match_line=True)

    assert "".join(segment.text for segment in segments) == text
    emphasized = [segment.text for segment in segments if segment.kind == EMPHASIZED]
    assert emphasized
    assert all(text_part == pattern for text_part in emphasized)


def test_dot_does_not_match_any_character() -> None:
    segments = highlight("abc", ".", is_match_line=True)

    assert _pairs(segments) == [(PLAIN, "abc")]


def test_no_occurrence_returns_single_plain_segment() -> None:
    segments = highlight("nothing to see", "needle", is_match_line=True)

    assert _pairs(segments) == [(PLAIN, "nothing to see")]


def test_empty_text_on_match_line() -> None:
    segments = highlight("", "needle", is_match_line=True)

    assert _pairs(segments) == [(PLAIN, "")]


@pytest.mark.parametrize(
    ("text", "pattern"),
    [
        ("Straße und STRASSE", "strasse"),
        ("İstanbul istanbul", "i"),
        ("ΣΊΣΥΦΟΣ σίσυφος", "σ"),
        ("mixed Ǆ ǆ ǅ", "ǆ"),
        ("tabs\tand  spaces", " "),
    ],
)
def test_segments_concatenate_to_original_text(text: str, pattern: str) -> None:
    segments = highlight(text, pattern, is_match_line=True)

    assert "".join(segment.text for segment in segments) == text
    assert all(segment.text for segment in segments)


def test_length_changing_fold_maps_back_to_original_text() -> None:
    """'ß' folds to 'ss', so searching 'ss' emphasizes the original 'ß'."""
    segments = highlight("Straße", "ss", is_match_line=True)

    assert _pairs(segments) == [(PLAIN, "Stra"), (EMPHASIZED, "ß"), (PLAIN, "e")]


def test_hit_inside_a_single_fold_is_skipped() -> None:
    """Only half of the folded 'ß' matches 's', which is not a real character match."""
    segments = highlight("ß", "s", is_match_line=True)

    assert _pairs(segments) == [(PLAIN, "ß")]


def test_failure_falls_back_to_plain_text() -> None:
    with patch("rgpanel.services.highlight._split", side_effect=ValueError("boom")):
        segments = highlight("Hello World", "hello", is_match_line=True)

    assert _pairs(segments) == [(PLAIN, "Hello World")]


def test_engine_delegates_to_function() -> None:
    engine = HighlightEngine()

    assert engine.highlight("Hello", "ell", True) == highlight("Hello", "ell", True)

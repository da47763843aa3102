"""Tests for filter chips, counts, empty states and match tiers."""

import pytest

from matchview.core.schemas import FilterCriteria
from matchview.pipeline.summary import (
    EMPTY_STATE_MESSAGES,
    EmptyState,
    count_active_filters,
    empty_state,
    filter_chips,
    format_experience,
    match_tier,
    showing_line,
    summarize_filters,
)


def _labels(criteria: FilterCriteria) -> list[str]:
    return [chip.label for chip in filter_chips(criteria)]


# ---------------------------------------------------------------------------
# Chips
# ---------------------------------------------------------------------------


class TestFilterChips:
    def test_no_chips_for_defaults(self) -> None:
        assert filter_chips(FilterCriteria()) == []

    def test_min_score_only(self) -> None:
        assert _labels(FilterCriteria(score_min=50)) == ["Match ≥ 50%"]

    def test_max_score_only(self) -> None:
        assert _labels(FilterCriteria(score_max=75.5)) == ["Match ≤ 75.5%"]

    def test_both_score_bounds_single_chip(self) -> None:
        chips = filter_chips(FilterCriteria(score_min=40, score_max=90))
        assert [(c.key, c.label) for c in chips] == [("match_range", "Match 40% - 90%")]

    def test_explicit_default_score_range_still_shown(self) -> None:
        assert _labels(FilterCriteria(score_min=0, score_max=100)) == ["Match 0% - 100%"]

    def test_experience_range(self) -> None:
        chips = filter_chips(FilterCriteria(experience_min=0.5, experience_max=1.5))
        assert [(c.label, c.kind) for c in chips] == [("Experience 6m - 1y 6m", "secondary")]

    def test_experience_min_only(self) -> None:
        assert _labels(FilterCriteria(experience_min=2)) == ["Experience ≥ 2y"]

    def test_experience_max_only(self) -> None:
        assert _labels(FilterCriteria(experience_max=0.25)) == ["Experience ≤ 3m"]

    def test_zero_experience_min_has_no_chip(self) -> None:
        assert _labels(FilterCriteria(experience_min=0)) == []

    def test_fixed_order(self) -> None:
        criteria = FilterCriteria(
            query="django",
            exclude_flagged=True,
            days_posted=1,
            categories={"experienceLevel": "Entry"},
            location="Remote",
            skills=["Python", "SQL"],
            score_min=60,
        )
        assert _labels(criteria) == [
            "Match ≥ 60%",
            "Skills: Python, SQL",
            "Location: Remote",
            "Experience level: Entry",
            "Posted within 1 day",
            "Excluding flagged",
            'Search: "django"',
        ]

    def test_days_posted_plural(self) -> None:
        assert _labels(FilterCriteria(days_posted=7)) == ["Posted within 7 days"]

    def test_flagged_chip_kind(self) -> None:
        (chip,) = filter_chips(FilterCriteria(exclude_flagged=True))
        assert chip.kind == "warning"


class TestFormatExperience:
    @pytest.mark.parametrize(
        ("years", "expected"),
        [(0, "0m"), (0.5, "6m"), (1, "1y"), (1.5, "1y 6m"), (2.25, "2y 3m"), (10, "10y")],
    )
    def test_format(self, years: float, expected: str) -> None:
        assert format_experience(years) == expected


# ---------------------------------------------------------------------------
# Counts and showing line
# ---------------------------------------------------------------------------


class TestCountActiveFilters:
    def test_defaults(self) -> None:
        assert count_active_filters(FilterCriteria()) == 0

    def test_explicit_defaults_not_counted(self) -> None:
        assert count_active_filters(FilterCriteria(score_min=0, score_max=100, experience_min=0)) == 0

    def test_range_counts_once(self) -> None:
        assert count_active_filters(FilterCriteria(score_min=10, score_max=90)) == 1

    def test_each_criterion_counted(self) -> None:
        criteria = FilterCriteria(
            score_min=10,
            experience_max=2,
            skills="Go",
            location="Rome",
            days_posted=30,
            exclude_flagged=True,
            query="api",
            categories={"experienceLevel": "Entry", "type": "Remote"},
        )
        assert count_active_filters(criteria) == 9


class TestShowingLine:
    def test_hidden_when_nothing_removed(self) -> None:
        assert showing_line(12, 12) is None

    def test_hidden_without_records(self) -> None:
        assert showing_line(0, 0) is None

    def test_percentage_rounded(self) -> None:
        assert showing_line(8, 12, "internships") == "Showing 8 of 12 internships (67% match filters)"

    def test_summary_combines(self) -> None:
        summary = summarize_filters(FilterCriteria(score_min=50), 8, 12)
        assert [c.label for c in summary.chips] == ["Match ≥ 50%"]
        assert summary.showing == "Showing 8 of 12 results (67% match filters)"
        assert summary.is_empty is False

    def test_summary_empty(self) -> None:
        assert summarize_filters(FilterCriteria(), 5, 5).is_empty is True


# ---------------------------------------------------------------------------
# Empty state and tiers
# ---------------------------------------------------------------------------


class TestEmptyState:
    def test_no_data(self) -> None:
        assert empty_state(0, 0) is EmptyState.NO_DATA

    def test_no_matches(self) -> None:
        assert empty_state(12, 0) is EmptyState.NO_MATCHES

    def test_has_results(self) -> None:
        assert empty_state(12, 3) is None

    def test_every_state_has_message(self) -> None:
        assert set(EMPTY_STATE_MESSAGES) == set(EmptyState)


class TestMatchTier:
    @pytest.mark.parametrize(
        ("score", "tier"),
        [(100, "Strong Match"), (80, "Strong Match"), (79.9, "Moderate Match"), (60, "Moderate Match"), (59, "Weak Match"), (0, "Weak Match")],
    )
    def test_tiers(self, score: float, tier: str) -> None:
        assert match_tier(score) == tier

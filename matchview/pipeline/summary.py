"""Read-only projections of the current filter state for display.

Produces the "active filter" chips, the "showing N of M" line, the badge
count, the empty-state classification and match tiers. Nothing here
changes state.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict

from matchview.core.schemas import SCORE_MAX, SCORE_MIN, FilterCriteria


class FilterChip(BaseModel):
    """One human-readable descriptor of an active criterion."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    kind: str = "primary"


class FilterSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    chips: list[FilterChip]
    showing: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.chips and self.showing is None


class EmptyState(str, Enum):
    """Why a view renders no records."""

    NO_DATA = "no_data"
    NO_MATCHES = "no_matches"


EMPTY_STATE_MESSAGES: dict[EmptyState, str] = {
    EmptyState.NO_DATA: "Nothing to show yet. Refresh once the backend has results.",
    EmptyState.NO_MATCHES: "No results match the current filters. Clear filters or adjust the criteria.",
}

STRONG_MATCH = 80.0
MODERATE_MATCH = 60.0

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def format_experience(years: float) -> str:
    """Render years as months below one year, else as ``Ny`` or ``Ny Mm``."""
    months = round(years * 12)
    if months >= 12:
        full_years, remaining = divmod(months, 12)
        if remaining == 0:
            return f"{full_years}y"
        return f"{full_years}y {remaining}m"
    return f"{months}m"


def _format_number(value: float) -> str:
    return f"{value:g}"


def _score_chip(criteria: FilterCriteria) -> FilterChip | None:
    explicit = criteria.model_fields_set
    low, high = criteria.score_min, criteria.score_max
    if "score_min" in explicit and "score_max" in explicit:
        return FilterChip(
            key="match_range",
            label=f"Match {_format_number(low)}% - {_format_number(high)}%",
        )
    if low > SCORE_MIN:
        return FilterChip(key="min_score", label=f"Match ≥ {_format_number(low)}%")
    if high < SCORE_MAX:
        return FilterChip(key="max_score", label=f"Match ≤ {_format_number(high)}%")
    return None


def _experience_chip(criteria: FilterCriteria) -> FilterChip | None:
    low, high = criteria.experience_min, criteria.experience_max
    if low is not None and high is not None:
        return FilterChip(
            key="exp_range",
            label=f"Experience {format_experience(low)} - {format_experience(high)}",
            kind="secondary",
        )
    if low is not None and low > 0:
        return FilterChip(key="min_exp", label=f"Experience ≥ {format_experience(low)}", kind="secondary")
    if high is not None:
        return FilterChip(key="max_exp", label=f"Experience ≤ {format_experience(high)}", kind="secondary")
    return None


def filter_chips(criteria: FilterCriteria) -> list[FilterChip]:
    """One chip per active criterion, in a fixed order."""
    chips: list[FilterChip] = []
    for chip in (_score_chip(criteria), _experience_chip(criteria)):
        if chip is not None:
            chips.append(chip)
    if criteria.skills:
        chips.append(FilterChip(key="skills", label=f"Skills: {', '.join(criteria.skills)}"))
    if criteria.location:
        chips.append(FilterChip(key="location", label=f"Location: {criteria.location}"))
    for name, value in criteria.categories.items():
        chips.append(FilterChip(key=f"category:{name}", label=f"{_humanize(name)}: {value}"))
    if criteria.days_posted is not None:
        unit = "day" if criteria.days_posted == 1 else "days"
        chips.append(FilterChip(key="days_posted", label=f"Posted within {criteria.days_posted} {unit}"))
    if criteria.exclude_flagged:
        chips.append(FilterChip(key="flagged", label="Excluding flagged", kind="warning"))
    if criteria.query:
        chips.append(FilterChip(key="query", label=f'Search: "{criteria.query}"'))
    return chips


def showing_line(visible_count: int, count_before_filter: int, noun: str = "results") -> str | None:
    """'Showing N of M' text, only when filtering actually removed something."""
    if count_before_filter <= 0 or visible_count == count_before_filter:
        return None
    percent = round(visible_count / count_before_filter * 100)
    return f"Showing {visible_count} of {count_before_filter} {noun} ({percent}% match filters)"


def summarize_filters(
    criteria: FilterCriteria,
    visible_count: int,
    count_before_filter: int,
    noun: str = "results",
) -> FilterSummary:
    return FilterSummary(
        chips=filter_chips(criteria),
        showing=showing_line(visible_count, count_before_filter, noun),
    )


def count_active_filters(criteria: FilterCriteria) -> int:
    """Badge count: criteria that differ from their defaults.

    A score or experience range counts once even when both ends moved.
    """
    count = 0
    if criteria.score_min > SCORE_MIN or criteria.score_max < SCORE_MAX:
        count += 1
    if (criteria.experience_min or 0) > 0 or criteria.experience_max is not None:
        count += 1
    count += sum(
        1 for name in ("skills", "location", "days_posted", "exclude_flagged", "query")
        if not criteria.is_default(name)
    )
    count += len(criteria.categories)
    return count


def empty_state(count_before_filter: int, visible_count: int) -> EmptyState | None:
    if count_before_filter == 0:
        return EmptyState.NO_DATA
    if visible_count == 0:
        return EmptyState.NO_MATCHES
    return None


def match_tier(score: float) -> str:
    if score >= STRONG_MATCH:
        return "Strong Match"
    if score >= MODERATE_MATCH:
        return "Moderate Match"
    return "Weak Match"


def _humanize(name: str) -> str:
    """``experienceLevel`` -> ``Experience level``."""
    words = _CAMEL_BOUNDARY.sub(" ", name).replace("_", " ").split()
    return " ".join(words).lower().capitalize()

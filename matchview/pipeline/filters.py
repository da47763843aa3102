"""Filter chain for result views.

Filter order:
  1. ScoreRangeFilter       — numeric, inclusive
  2. ExperienceRangeFilter  — numeric, inclusive, years
  3. SkillsFilter           — OR across the skill list, case-insensitive
  4. LocationFilter         — case-insensitive substring
  5. CategoryFilter         — case-insensitive exact match, one per field
  6. PostedWithinFilter     — age in days of the posted date
  7. ExcludeFlaggedFilter   — drops flagged records
  8. TextSearchFilter       — free text over the configured search fields

Every filter passes all records through when its criterion is at the
"no constraint" default. A record missing the measured field fails a
constraining filter. Output keeps the input's relative order.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import date, datetime, timezone

from matchview.core.config import RecordFields
from matchview.core.records import (
    get_datetime,
    get_number,
    get_strings,
    get_text,
    is_truthy,
)
from matchview.core.schemas import SCORE_MAX, SCORE_MIN, FilterCriteria, Record

logger = logging.getLogger(__name__)

# A filter is a callable that takes records and returns a subset.
Filter = Callable[[list[Record]], list[Record]]


class NumericRangeFilter:
    """Keep records whose ``key`` lies in ``[low, high]``; None means unbounded."""

    def __init__(self, key: str, low: float | None, high: float | None) -> None:
        self._key = key
        self._low = low
        self._high = high

    @property
    def active(self) -> bool:
        return self._low is not None or self._high is not None

    def __call__(self, records: list[Record]) -> list[Record]:
        if not self.active:
            return records
        result = [r for r in records if self._matches(r)]
        _log_removed(self, records, result)
        return result

    def _matches(self, record: Record) -> bool:
        value = get_number(record, self._key)
        if value is None:
            return False
        if self._low is not None and value < self._low:
            return False
        if self._high is not None and value > self._high:
            return False
        return True


class ScoreRangeFilter(NumericRangeFilter):
    """Match-score range; the 0 and 100 edges impose no constraint."""

    def __init__(self, key: str, score_min: float, score_max: float) -> None:
        super().__init__(
            key,
            score_min if score_min > SCORE_MIN else None,
            score_max if score_max < SCORE_MAX else None,
        )


class ExperienceRangeFilter(NumericRangeFilter):
    """Experience range in years; a lower bound of 0 imposes no constraint."""

    def __init__(self, key: str, experience_min: float | None, experience_max: float | None) -> None:
        low = experience_min if experience_min is not None and experience_min > 0 else None
        super().__init__(key, low, experience_max)


class SkillsFilter:
    """Keep records that list at least one of the wanted skills."""

    def __init__(self, key: str, skills: Sequence[str]) -> None:
        self._key = key
        self._skills = {s.casefold().strip() for s in skills if s.strip()}

    def __call__(self, records: list[Record]) -> list[Record]:
        if not self._skills:
            return records
        result = [r for r in records if self._matches(r)]
        _log_removed(self, records, result)
        return result

    def _matches(self, record: Record) -> bool:
        have = get_strings(record, self._key)
        if not have:
            return False
        return any(skill.casefold() in self._skills for skill in have)


class LocationFilter:
    """Case-insensitive substring match against the record location."""

    def __init__(self, key: str, location: str) -> None:
        self._key = key
        self._needle = location.casefold().strip()

    def __call__(self, records: list[Record]) -> list[Record]:
        if not self._needle:
            return records
        result = [r for r in records if self._matches(r)]
        _log_removed(self, records, result)
        return result

    def _matches(self, record: Record) -> bool:
        location = get_text(record, self._key)
        return location is not None and self._needle in location.casefold()


class CategoryFilter:
    """Exact, case-insensitive equality on a single categorical field."""

    def __init__(self, key: str, value: str) -> None:
        self._key = key
        self._value = value.casefold().strip()

    def __call__(self, records: list[Record]) -> list[Record]:
        if not self._value:
            return records
        result = [r for r in records if self._matches(r)]
        _log_removed(self, records, result)
        return result

    def _matches(self, record: Record) -> bool:
        value = get_text(record, self._key)
        return value is not None and value.casefold().strip() == self._value


class PostedWithinFilter:
    """Keep records posted at most ``days`` days before ``today``."""

    def __init__(self, key: str, days: int | None, today: date | None = None) -> None:
        self._key = key
        self._days = days
        self._today = today or datetime.now(timezone.utc).date()

    def __call__(self, records: list[Record]) -> list[Record]:
        if self._days is None:
            return records
        result = [r for r in records if self._matches(r)]
        _log_removed(self, records, result)
        return result

    def _matches(self, record: Record) -> bool:
        posted = get_datetime(record, self._key)
        if posted is None:
            return False
        return (self._today - posted.date()).days <= self._days


class ExcludeFlaggedFilter:
    """Drop records whose flag field is truthy; records without a flag pass."""

    def __init__(self, key: str, exclude: bool) -> None:
        self._key = key
        self._exclude = exclude

    def __call__(self, records: list[Record]) -> list[Record]:
        if not self._exclude:
            return records
        result = [r for r in records if not is_truthy(r, self._key)]
        _log_removed(self, records, result)
        return result


class TextSearchFilter:
    """Keep records where any search field contains the query (case-insensitive).

    List-valued fields match when any element contains the query.
    """

    def __init__(self, keys: Sequence[str], query: str) -> None:
        self._keys = list(keys)
        self._query = query.casefold().strip()

    def __call__(self, records: list[Record]) -> list[Record]:
        if not self._query:
            return records
        result = [r for r in records if self._matches(r)]
        _log_removed(self, records, result)
        return result

    def _matches(self, record: Record) -> bool:
        for key in self._keys:
            value = record.get(key)
            if isinstance(value, (list, tuple)):
                texts = get_strings(record, key) or []
            else:
                text = get_text(record, key)
                texts = [text] if text is not None else []
            if any(self._query in t.casefold() for t in texts):
                return True
        return False


def build_filters(
    criteria: FilterCriteria,
    fields: RecordFields,
    today: date | None = None,
) -> list[Filter]:
    """Build the filter chain for a set of criteria (module docstring order)."""
    filters: list[Filter] = [
        ScoreRangeFilter(fields.score, criteria.score_min, criteria.score_max),
        ExperienceRangeFilter(fields.experience, criteria.experience_min, criteria.experience_max),
        SkillsFilter(fields.skills, criteria.skills),
        LocationFilter(fields.location, criteria.location),
    ]
    for name, value in criteria.categories.items():
        key = fields.categories.get(name)
        if key is None:
            logger.debug("No record field configured for category '%s' — ignoring", name)
            continue
        filters.append(CategoryFilter(key, value))
    filters.extend([
        PostedWithinFilter(fields.posted_date, criteria.days_posted, today),
        ExcludeFlaggedFilter(fields.flagged, criteria.exclude_flagged),
        TextSearchFilter(fields.search, criteria.query),
    ])
    return filters


def run_filter_chain(records: list[Record], filters: list[Filter]) -> list[Record]:
    """Apply filters in order, returning the surviving records."""
    result = records
    for f in filters:
        result = f(result)
    return result


def filter_records(
    records: Sequence[Record],
    criteria: FilterCriteria,
    fields: RecordFields | None = None,
    today: date | None = None,
) -> list[Record]:
    """Return the records that satisfy every active criterion, in input order."""
    fields = fields or RecordFields()
    return run_filter_chain(list(records), build_filters(criteria, fields, today))


def _log_removed(f: object, before: list[Record], after: list[Record]) -> None:
    removed = len(before) - len(after)
    if removed:
        logger.debug("%s: removed %d records", type(f).__name__, removed)

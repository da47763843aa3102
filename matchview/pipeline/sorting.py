"""Stable sorting of result records.

Keys are resolved through a fixed dispatch table; unknown keys fall back to
the match score. Records without a usable sort value go after every record
that has one, in input order, whichever the direction.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from matchview.core.config import RecordFields
from matchview.core.records import get_datetime, get_number, get_text
from matchview.core.schemas import Record, SortSpec

logger = logging.getLogger(__name__)

DEFAULT_SORT_KEY = "score"

# Reads one sort value from a record; None means missing.
SortExtractor = Callable[[Record, RecordFields], Any]


def _score(record: Record, fields: RecordFields) -> float | None:
    return get_number(record, fields.score)


def _date(record: Record, fields: RecordFields) -> Any:
    return get_datetime(record, fields.posted_date)


def _title(record: Record, fields: RecordFields) -> str | None:
    title = get_text(record, fields.title)
    return title.casefold() if title is not None else None


def _experience(record: Record, fields: RecordFields) -> float | None:
    return get_number(record, fields.experience)


SORT_KEYS: dict[str, SortExtractor] = {
    "score": _score,
    "date": _date,
    "title": _title,
    "experience": _experience,
}


def resolve_sort_key(key: str) -> str:
    """Return ``key`` if it is known, else the default key."""
    if key in SORT_KEYS:
        return key
    logger.debug("Unknown sort key '%s' — falling back to '%s'", key, DEFAULT_SORT_KEY)
    return DEFAULT_SORT_KEY


def sort_records(
    records: Sequence[Record],
    spec: SortSpec,
    fields: RecordFields | None = None,
) -> list[Record]:
    """Return a new list ordered by ``spec``; the input is left untouched.

    Python's sort is stable and ``reverse=True`` keeps equal elements in
    their original order, so ties always preserve input order.
    """
    fields = fields or RecordFields()
    extract = SORT_KEYS[resolve_sort_key(spec.key)]

    keyed: list[tuple[Any, Record]] = []
    missing: list[Record] = []
    for record in records:
        value = extract(record, fields)
        if value is None:
            missing.append(record)
        else:
            keyed.append((value, record))

    keyed.sort(key=lambda pair: pair[0], reverse=spec.descending)
    return [record for _, record in keyed] + missing

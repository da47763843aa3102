"""Query-string encoding of view state, and the address-bar synchronizer.

Only non-default values are written, so a fresh view has an empty query
string. Decoding never raises: unknown or malformed parameters are logged
and skipped, leaving that fragment at its default.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qs, quote_plus, urlencode

from pydantic import ValidationError

from matchview.core.config import ViewConfig
from matchview.core.schemas import (
    SCORE_MAX,
    SCORE_MIN,
    FilterCriteria,
    PaginationSpec,
    SortSpec,
    ViewState,
)
from matchview.pipeline.store import ResultStore, ResultView

logger = logging.getLogger(__name__)

# --- Parameter names (client-owned URL contract) ---

PAGE = "page"
PAGE_SIZE = "pageSize"
MIN_SCORE = "minScore"
MAX_SCORE = "maxScore"
MIN_EXPERIENCE = "minExperience"
MAX_EXPERIENCE = "maxExperience"
SKILLS = "skills"
LOCATION = "location"
DAYS_POSTED = "daysPosted"
EXCLUDE_FLAGGED = "excludeFlagged"
QUERY = "q"
SORT_BY = "sortBy"
SORT_ORDER = "sortOrder"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def encode_query(state: ViewState, config: ViewConfig) -> str:
    """Build the query string (without ``?``) for ``state``.

    Args:
        state: Current view fragments.
        config: View config supplying defaults and categorical params.

    Returns:
        URL-encoded query string; empty when everything is at its default.
    """
    criteria = state.criteria
    params: dict[str, str] = {}

    if state.pagination.page != 1:
        params[PAGE] = str(state.pagination.page)
    if state.pagination.page_size != config.default_page_size:
        params[PAGE_SIZE] = str(state.pagination.page_size)

    if criteria.score_min > SCORE_MIN:
        params[MIN_SCORE] = _format_number(criteria.score_min)
    if criteria.score_max < SCORE_MAX:
        params[MAX_SCORE] = _format_number(criteria.score_max)
    if criteria.experience_min is not None and criteria.experience_min > 0:
        params[MIN_EXPERIENCE] = _format_number(criteria.experience_min)
    if criteria.experience_max is not None:
        params[MAX_EXPERIENCE] = _format_number(criteria.experience_max)

    if criteria.skills:
        params[SKILLS] = ",".join(criteria.skills)
    if criteria.location:
        params[LOCATION] = criteria.location
    for name in config.record_fields.categories:
        value = criteria.categories.get(name)
        if value:
            params[name] = value
    if criteria.days_posted is not None:
        params[DAYS_POSTED] = str(criteria.days_posted)
    if criteria.exclude_flagged:
        params[EXCLUDE_FLAGGED] = "true"
    if criteria.query:
        params[QUERY] = criteria.query

    if state.sort.key != config.sort_by:
        params[SORT_BY] = state.sort.key
    if state.sort.direction != config.sort_order:
        params[SORT_ORDER] = state.sort.direction

    return urlencode(params, quote_via=quote_plus)


def decode_query(query: str, config: ViewConfig) -> ViewState:
    """Parse a query string (or full URL) into view state, defaulting what is missing."""
    raw = _single_values(query)

    page = _parse(raw, PAGE, _positive_int)
    page_size = _parse(raw, PAGE_SIZE, _positive_int)
    if page_size is not None and page_size not in config.page_size_options:
        _skip(PAGE_SIZE, raw[PAGE_SIZE])
        page_size = None
    pagination = PaginationSpec(
        page=page or 1,
        page_size=page_size or config.default_page_size,
    )

    sort_by = raw.get(SORT_BY)
    if sort_by is not None and sort_by not in config.sort_keys:
        _skip(SORT_BY, sort_by)
        sort_by = None
    sort_order = raw.get(SORT_ORDER)
    if sort_order is not None and sort_order.lower() not in ("asc", "desc"):
        _skip(SORT_ORDER, sort_order)
        sort_order = None
    sort = SortSpec(
        key=sort_by or config.sort_by,
        direction=(sort_order.lower() if sort_order else config.sort_order),  # type: ignore[arg-type]
    )

    return ViewState(
        criteria=_decode_criteria(raw, config),
        sort=sort,
        pagination=pagination,
    )


def _decode_criteria(raw: dict[str, str], config: ViewConfig) -> FilterCriteria:
    data: dict[str, Any] = {}

    _set_range(
        data, raw,
        (MIN_SCORE, "score_min"), (MAX_SCORE, "score_max"),
        _score,
    )
    _set_range(
        data, raw,
        (MIN_EXPERIENCE, "experience_min"), (MAX_EXPERIENCE, "experience_max"),
        _non_negative,
    )

    if raw.get(SKILLS):
        data["skills"] = raw[SKILLS]
    if raw.get(LOCATION):
        data["location"] = raw[LOCATION]
    if raw.get(QUERY):
        data["query"] = raw[QUERY]

    days = _parse(raw, DAYS_POSTED, _positive_int)
    if days is not None:
        data["days_posted"] = days
    flagged = _parse(raw, EXCLUDE_FLAGGED, _boolean)
    if flagged:
        data["exclude_flagged"] = True

    categories = {
        name: raw[name] for name in config.record_fields.categories if raw.get(name)
    }
    if categories:
        data["categories"] = categories

    try:
        return FilterCriteria.model_validate(data)
    except ValidationError as e:
        logger.warning("Ignoring filter parameters that do not validate: %s", e)
        return FilterCriteria()


def _set_range(
    data: dict[str, Any],
    raw: dict[str, str],
    low_names: tuple[str, str],
    high_names: tuple[str, str],
    parser: Callable[[str], float],
) -> None:
    """Copy a min/max parameter pair into ``data``, dropping both if they cross."""
    low_param, low_field = low_names
    high_param, high_field = high_names
    low = _parse(raw, low_param, parser)
    high = _parse(raw, high_param, parser)
    if low is not None and high is not None and low > high:
        logger.warning(
            "Ignoring crossing range %s=%s > %s=%s", low_param, low, high_param, high,
        )
        return
    if low is not None:
        data[low_field] = low
    if high is not None:
        data[high_field] = high


def _single_values(query: str) -> dict[str, str]:
    text = query.split("#", 1)[0]
    if "?" in text:
        text = text.split("?", 1)[1]
    parsed = parse_qs(text, keep_blank_values=False)
    # Last occurrence wins, as in the browser's URLSearchParams.set()
    return {name: values[-1].strip() for name, values in parsed.items()}


def _parse(raw: dict[str, str], name: str, parser: Callable[[str], Any]) -> Any:
    value = raw.get(name)
    if value is None:
        return None
    try:
        return parser(value)
    except ValueError:
        _skip(name, value)
        return None


def _skip(name: str, value: str) -> None:
    logger.warning("Malformed query parameter %s='%s' — skipping", name, value)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        msg = f"expected a positive integer, got {number}"
        raise ValueError(msg)
    return number


def _non_negative(value: str) -> float:
    number = float(value)
    if not number >= 0 or number == float("inf"):
        msg = f"expected a non-negative number, got {value}"
        raise ValueError(msg)
    return number


def _score(value: str) -> float:
    number = _non_negative(value)
    if number > SCORE_MAX:
        msg = f"score out of range: {value}"
        raise ValueError(msg)
    return number


def _boolean(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    msg = f"expected a boolean, got {value}"
    raise ValueError(msg)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


# --- Address bar boundary ---


class Location(ABC):
    """Key-value boundary to the browser address bar's query string."""

    @abstractmethod
    def read(self) -> str:
        """Return the current query string (without ``?``)."""

    @abstractmethod
    def replace(self, query: str) -> None:
        """Swap the current history entry's query string; adds no entry."""


class MemoryLocation(Location):
    """In-process address bar with a visible history stack."""

    def __init__(self, query: str = "") -> None:
        self.history: list[str] = [query.lstrip("?")]

    def read(self) -> str:
        return self.history[-1]

    def replace(self, query: str) -> None:
        self.history[-1] = query

    def push(self, query: str) -> None:
        """Navigate to a new entry (user navigation, never the synchronizer)."""
        self.history.append(query.lstrip("?"))


class UrlSynchronizer:
    """Keeps a Location's query string in step with a ResultStore.

    Usage::

        sync = UrlSynchronizer(location, config)
        store = ResultStore(config, sync.seed())
        sync.attach(store)
    """

    def __init__(self, location: Location, config: ViewConfig) -> None:
        self._location = location
        self._config = config
        self._unsubscribe: Callable[[], None] | None = None

    def seed(self) -> ViewState:
        """Initial fragments parsed from the current query string."""
        return decode_query(self._location.read(), self._config)

    def sync(self, state: ViewState) -> bool:
        """Rewrite the query string for ``state``. Returns True if it changed."""
        query = encode_query(state, self._config)
        if query == self._location.read():
            return False
        self._location.replace(query)
        logger.debug("Query string replaced: '%s'", query)
        return True

    def attach(self, store: ResultStore) -> None:
        self.detach()
        self._unsubscribe = store.subscribe(self._on_view)
        self.sync(store.state)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_view(self, view: ResultView) -> None:
        self.sync(view.state)


def open_view(config: ViewConfig, location: Location) -> tuple[ResultStore, UrlSynchronizer]:
    """Create a store seeded from ``location`` and keep the two in sync."""
    sync = UrlSynchronizer(location, config)
    store = ResultStore(config, sync.seed())
    sync.attach(store)
    return store, sync

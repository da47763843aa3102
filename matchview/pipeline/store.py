"""State store: owns a view's records and fragments and derives the visible page.

Data flow on every change:
  1. Filter chain   → records that satisfy the criteria
  2. Sort           → ordered records
  3. Page validity  → page reset to 1 if it no longer points inside the set
  4. Paginate       → visible page
  5. Notify subscribers (URL synchronizer, renderers)

Nothing here touches the network except ``refresh``; filter, sort and page
edits only re-run the steps above on the records already held.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

from matchview.core.config import ViewConfig
from matchview.core.schemas import FilterCriteria, Page, Record, SortSpec, ViewState
from matchview.pipeline import ranges
from matchview.pipeline.filters import filter_records
from matchview.pipeline.pagination import clamp_page, paginate, total_pages
from matchview.pipeline.ranges import RangeControl
from matchview.pipeline.sorting import sort_records
from matchview.pipeline.summary import (
    EmptyState,
    FilterSummary,
    count_active_filters,
    empty_state,
    summarize_filters,
)
from matchview.sources.base import RecordSource, RecordSourceError

logger = logging.getLogger(__name__)


class ResultView:
    """Everything a renderer needs for one recomputation."""

    def __init__(
        self,
        state: ViewState,
        page: Page,
        count_before_filter: int,
        summary: FilterSummary,
        error: str | None = None,
        loading: bool = False,
    ) -> None:
        self.state = state
        self.page = page
        self.count_before_filter = count_before_filter
        self.summary = summary
        self.error = error
        self.loading = loading

    @property
    def visible_count(self) -> int:
        return self.page.total

    @property
    def items(self) -> list[Record]:
        return self.page.items

    @property
    def active_filter_count(self) -> int:
        return count_active_filters(self.state.criteria)

    @property
    def empty_state(self) -> EmptyState | None:
        if self.error is not None or self.loading:
            return None
        return empty_state(self.count_before_filter, self.visible_count)


Listener = Callable[[ResultView], Any]


class ResultStore:
    """Holds the full record array plus filter, sort and pagination fragments.

    Usage::

        store = ResultStore(config)
        store.subscribe(render)
        await store.refresh(source)
        store.update_filters(score_min=50)   # page resets to 1
        store.set_page(2)
    """

    def __init__(
        self,
        config: ViewConfig,
        state: ViewState | None = None,
        today: date | None = None,
    ) -> None:
        self._config = config
        self._state = state or config.default_state()
        self._records: tuple[Record, ...] = ()
        self._listeners: list[Listener] = []
        self._today = today
        self._error: str | None = None
        self._loading = False
        self._fetch_generation = 0
        self._view = self._compute()

    # --- read side ---

    @property
    def config(self) -> ViewConfig:
        return self._config

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def records(self) -> tuple[Record, ...]:
        return self._records

    @property
    def view(self) -> ResultView:
        return self._view

    @property
    def loading(self) -> bool:
        return self._loading

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every recompute. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- fragments ---

    def set_records(self, records: Iterable[Record], error: str | None = None) -> ResultView:
        """Replace the source array (after a fetch). Keeps the current page if still valid."""
        self._records = tuple(records)
        self._error = error
        return self.recompute()

    def set_filters(self, criteria: FilterCriteria) -> ResultView:
        self._replace(criteria=criteria, page=1)
        return self.recompute()

    def update_filters(self, **changes: Any) -> ResultView:
        return self.set_filters(self._state.criteria.with_changes(**changes))

    def clear_filters(self) -> ResultView:
        return self.set_filters(FilterCriteria())

    def apply_range(self, control: RangeControl, min_field: str, max_field: str) -> ResultView:
        """Copy a range control's current bounds into the criteria."""
        return self.set_filters(control.apply(self._state.criteria, min_field, max_field))

    def score_control(self) -> RangeControl:
        """Score slider seeded from the current criteria."""
        control = ranges.score_control()
        control.seed(self._state.criteria, "score_min", "score_max")
        return control

    def experience_control(self) -> RangeControl:
        """Experience slider in the view's configured unit, seeded from the criteria."""
        control = ranges.experience_control(self._config.experience)
        control.seed(self._state.criteria, "experience_min", "experience_max")
        return control

    def set_sort(self, spec: SortSpec) -> ResultView:
        """Change the sort if its key is one of the view's sort keys; page resets to 1."""
        if spec.key not in self._config.sort_keys:
            logger.debug("Ignoring sort key '%s' (keys: %s)", spec.key, self._config.sort_keys)
            return self._view
        self._replace(sort=spec, page=1)
        return self.recompute()

    def set_sort_key(self, key: str) -> ResultView:
        return self.set_sort(self._state.sort.model_copy(update={"key": key}))

    def set_sort_direction(self, direction: str) -> ResultView:
        if direction not in ("asc", "desc"):
            logger.debug("Ignoring unknown sort direction '%s'", direction)
            return self._view
        return self.set_sort(self._state.sort.model_copy(update={"direction": direction}))

    def set_page(self, page: Any) -> ResultView:
        """Move to ``page``, coerced to an int and clamped to ``[1, total_pages]``."""
        try:
            requested = int(page)
        except (TypeError, ValueError):
            logger.debug("Ignoring non-numeric page %r", page)
            return self._view
        last = total_pages(self._view.visible_count, self._state.pagination.page_size)
        self._replace(page=max(1, min(requested, last)))
        return self.recompute()

    def set_page_size(self, page_size: Any) -> ResultView:
        """Change the page size if it is one of the view's options; page resets to 1."""
        try:
            size = int(page_size)
        except (TypeError, ValueError):
            size = -1
        if size not in self._config.page_size_options:
            logger.debug("Ignoring page size %r (options: %s)", page_size, self._config.page_size_options)
            return self._view
        self._replace(page=1, page_size=size)
        return self.recompute()

    # --- derivation ---

    def recompute(self) -> ResultView:
        """Run filter → sort → paginate and notify subscribers."""
        self._view = self._compute()
        for listener in list(self._listeners):
            listener(self._view)
        return self._view

    def _compute(self) -> ResultView:
        config = self._config
        state = self._state
        filtered = filter_records(self._records, state.criteria, config.record_fields, self._today)
        ordered = sort_records(filtered, state.sort, config.record_fields)

        pagination = state.pagination
        page = clamp_page(pagination.page, len(ordered), pagination.page_size)
        if page != pagination.page:
            logger.debug("Page %d out of range for %d records — reset to 1", pagination.page, len(ordered))
            self._replace(page=page)
            state = self._state

        return ResultView(
            state=state,
            page=paginate(ordered, state.pagination),
            count_before_filter=len(self._records),
            summary=summarize_filters(state.criteria, len(ordered), len(self._records), config.noun),
            error=self._error,
            loading=self._loading,
        )

    def _replace(
        self,
        *,
        criteria: FilterCriteria | None = None,
        sort: SortSpec | None = None,
        page: int | None = None,
        page_size: int | None = None,
    ) -> None:
        updates: dict[str, Any] = {}
        if criteria is not None:
            updates["criteria"] = criteria
        if sort is not None:
            updates["sort"] = sort
        pagination_updates: dict[str, int] = {}
        if page is not None:
            pagination_updates["page"] = page
        if page_size is not None:
            pagination_updates["page_size"] = page_size
        if pagination_updates:
            updates["pagination"] = self._state.pagination.model_copy(update=pagination_updates)
        self._state = self._state.model_copy(update=updates)

    # --- network ---

    async def refresh(self, source: RecordSource) -> bool:
        """Re-fetch the records from ``source``.

        Only the most recently started refresh may land; an older one that
        finishes later is discarded. A failed fetch leaves an empty record
        array and an error message on the view. Any other exception from the
        source propagates once the loading flag has been cleared.

        Returns:
            True if this fetch's result was applied.
        """
        self._fetch_generation += 1
        generation = self._fetch_generation
        self._loading = True
        self.recompute()

        try:
            records = await source.fetch(self._state.criteria)
        except RecordSourceError as e:
            if generation != self._fetch_generation:
                logger.debug("Discarding failure of superseded fetch #%d", generation)
                return False
            logger.warning("Fetch failed: %s", e)
            self._loading = False
            self.set_records([], error=str(e))
            return False
        except BaseException:
            # Loading never outlives the fetch, whatever ends it.
            if generation == self._fetch_generation:
                self._loading = False
                self.recompute()
            raise

        if generation != self._fetch_generation:
            logger.debug("Discarding superseded fetch #%d", generation)
            return False

        logger.info("Fetched %d records", len(records))
        self._loading = False
        self.set_records(records)
        return True

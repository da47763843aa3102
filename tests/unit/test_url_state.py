"""Tests for query-string encoding/decoding and the address-bar synchronizer."""

import logging
from urllib.parse import parse_qs

import pytest

from matchview.core.config import ViewConfig
from matchview.core.schemas import FilterCriteria, PaginationSpec, SortSpec, ViewState
from matchview.pipeline.store import ResultStore
from matchview.pipeline.url_state import (
    MemoryLocation,
    UrlSynchronizer,
    decode_query,
    encode_query,
    open_view,
)


@pytest.fixture
def config() -> ViewConfig:
    return ViewConfig()


def _parse(query: str) -> dict[str, list[str]]:
    return parse_qs(query)


def _records(n: int) -> list[dict[str, object]]:
    return [{"id": str(i), "title": f"Role {i}", "match_score": 100 - i} for i in range(n)]


# ---------------------------------------------------------------------------
# encode_query
# ---------------------------------------------------------------------------


class TestEncodeQuery:
    def test_defaults_encode_empty(self, config: ViewConfig) -> None:
        assert encode_query(config.default_state(), config) == ""

    def test_explicit_defaults_not_written(self, config: ViewConfig) -> None:
        state = config.default_state().model_copy(
            update={"criteria": FilterCriteria(score_min=0, score_max=100, experience_min=0)},
        )
        assert encode_query(state, config) == ""

    def test_filters_and_page(self, config: ViewConfig) -> None:
        state = ViewState(
            criteria=FilterCriteria(
                score_min=50,
                experience_max=1.5,
                skills=["Python", "C++"],
                location="New York",
                days_posted=7,
                exclude_flagged=True,
                query="data eng",
                categories={"experienceLevel": "Entry"},
            ),
            sort=SortSpec(key="date", direction="asc"),
            pagination=PaginationSpec(page=2, page_size=25),
        )
        params = _parse(encode_query(state, config))
        assert params == {
            "page": ["2"],
            "pageSize": ["25"],
            "minScore": ["50"],
            "maxExperience": ["1.5"],
            "skills": ["Python,C++"],
            "location": ["New York"],
            "experienceLevel": ["Entry"],
            "daysPosted": ["7"],
            "excludeFlagged": ["true"],
            "q": ["data eng"],
            "sortBy": ["date"],
            "sortOrder": ["asc"],
        }

    def test_special_chars_escaped(self, config: ViewConfig) -> None:
        state = ViewState(criteria=FilterCriteria(skills=["C++"]))
        assert encode_query(state, config) == "skills=C%2B%2B"

    def test_defaults_relative_to_view(self) -> None:
        config = ViewConfig(default_page_size=10, sort_by="title", sort_order="asc")
        state = ViewState(
            sort=SortSpec(key="title", direction="asc"),
            pagination=PaginationSpec(page=1, page_size=10),
        )
        assert encode_query(state, config) == ""

    def test_unconfigured_category_not_written(self, config: ViewConfig) -> None:
        state = ViewState(criteria=FilterCriteria(categories={"shoeSize": "42"}))
        assert encode_query(state, config) == ""


# ---------------------------------------------------------------------------
# decode_query
# ---------------------------------------------------------------------------


class TestDecodeQuery:
    def test_empty_gives_defaults(self, config: ViewConfig) -> None:
        assert decode_query("", config) == config.default_state()

    def test_full_url_accepted(self, config: ViewConfig) -> None:
        state = decode_query("https://app.example.com/dashboard?page=3&minScore=70#top", config)
        assert state.pagination.page == 3
        assert state.criteria.score_min == 70

    def test_leading_question_mark(self, config: ViewConfig) -> None:
        assert decode_query("?sortBy=title", config).sort.key == "title"

    def test_last_value_wins(self, config: ViewConfig) -> None:
        assert decode_query("page=2&page=4", config).pagination.page == 4

    def test_all_params(self, config: ViewConfig) -> None:
        query = (
            "page=2&pageSize=10&minScore=40&maxScore=90&minExperience=0.5&maxExperience=2"
            "&skills=Python,SQL&location=New+York&daysPosted=14&excludeFlagged=1&q=api"
            "&experienceLevel=Entry&sortBy=date&sortOrder=ASC"
        )
        state = decode_query(query, config)
        c = state.criteria
        assert (c.score_min, c.score_max) == (40, 90)
        assert (c.experience_min, c.experience_max) == (0.5, 2)
        assert c.skills == ("Python", "SQL")
        assert c.location == "New York"
        assert c.days_posted == 14
        assert c.exclude_flagged is True
        assert c.query == "api"
        assert c.categories == {"experienceLevel": "Entry"}
        assert state.sort == SortSpec(key="date", direction="asc")
        assert state.pagination == PaginationSpec(page=2, page_size=10)

    @pytest.mark.parametrize(
        "query",
        [
            "page=abc",
            "page=0",
            "page=-2",
            "pageSize=7",
            "pageSize=ten",
            "minScore=high",
            "minScore=150",
            "maxExperience=-1",
            "daysPosted=0",
            "excludeFlagged=maybe",
            "sortBy=salary",
            "sortOrder=sideways",
        ],
    )
    def test_malformed_values_fall_back(self, config: ViewConfig, query: str) -> None:
        assert decode_query(query, config) == config.default_state()

    def test_malformed_param_logged(self, config: ViewConfig, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="matchview.pipeline.url_state"):
            decode_query("page=abc", config)
        assert "page='abc'" in caplog.text

    def test_malformed_param_does_not_affect_others(self, config: ViewConfig) -> None:
        state = decode_query("page=abc&minScore=60&sortBy=nope", config)
        assert state.pagination.page == 1
        assert state.criteria.score_min == 60
        assert state.sort.key == "score"

    def test_crossing_range_dropped(self, config: ViewConfig) -> None:
        state = decode_query("minScore=80&maxScore=20&location=Oslo", config)
        assert state.criteria.score_min == 0
        assert state.criteria.score_max == 100
        assert state.criteria.location == "Oslo"

    def test_unknown_params_ignored(self, config: ViewConfig) -> None:
        assert decode_query("utm_source=mail&foo=bar", config) == config.default_state()

    def test_excluded_flag_false(self, config: ViewConfig) -> None:
        assert decode_query("excludeFlagged=false", config).criteria.exclude_flagged is False


class TestRoundTrip:
    def test_page_and_sort_round_trip(self, config: ViewConfig) -> None:
        state = ViewState(
            sort=SortSpec(key="date", direction="asc"),
            pagination=PaginationSpec(page=2, page_size=5),
        )
        query = encode_query(state, config)
        assert "minScore" not in query
        decoded = decode_query(query, config)
        assert decoded.sort == state.sort
        assert decoded.pagination == state.pagination
        assert decoded.criteria.score_min == 0

    def test_decode_encode_is_stable(self, config: ViewConfig) -> None:
        query = "page=2&minScore=50&skills=Go&sortOrder=asc"
        state = decode_query(query, config)
        again = decode_query(encode_query(state, config), config)
        assert again == state

    def test_non_default_state_round_trips(self, config: ViewConfig) -> None:
        state = ViewState(
            criteria=FilterCriteria(score_min=35.5, experience_min=1, location="Lyon"),
            sort=SortSpec(key="title", direction="desc"),
            pagination=PaginationSpec(page=4, page_size=50),
        )
        decoded = decode_query(encode_query(state, config), config)
        assert decoded == state

    def test_store_sort_always_round_trips(self, config: ViewConfig) -> None:
        store = ResultStore(config)
        for key in ("date", "experience", "salary"):
            store.set_sort_key(key)
            decoded = decode_query(encode_query(store.state, config), config)
            assert decoded.sort == store.state.sort
        assert store.state.sort.key == "date"


# ---------------------------------------------------------------------------
# UrlSynchronizer
# ---------------------------------------------------------------------------


class TestMemoryLocation:
    def test_replace_keeps_history_length(self) -> None:
        loc = MemoryLocation("?page=2")
        loc.replace("page=3")
        assert loc.history == ["page=3"]

    def test_push_adds_entry(self) -> None:
        loc = MemoryLocation()
        loc.push("?minScore=10")
        assert loc.history == ["", "minScore=10"]
        assert loc.read() == "minScore=10"


class TestUrlSynchronizer:
    def test_seed_reads_location(self, config: ViewConfig) -> None:
        sync = UrlSynchronizer(MemoryLocation("minScore=60"), config)
        assert sync.seed().criteria.score_min == 60

    def test_sync_only_on_change(self, config: ViewConfig) -> None:
        loc = MemoryLocation("")
        sync = UrlSynchronizer(loc, config)
        assert sync.sync(config.default_state()) is False
        state = ViewState(criteria=FilterCriteria(score_min=10))
        assert sync.sync(state) is True
        assert sync.sync(state) is False
        assert loc.history == ["minScore=10"]

    def test_attached_store_updates_location(self, config: ViewConfig) -> None:
        loc = MemoryLocation()
        store, _ = open_view(config, loc)
        store.set_records(_records(12))
        store.update_filters(score_min=50)
        assert loc.read() == "minScore=50"
        store.set_page(2)
        assert _parse(loc.read()) == {"minScore": ["50"], "page": ["2"]}
        assert len(loc.history) == 1

    def test_filter_change_drops_page_param(self, config: ViewConfig) -> None:
        loc = MemoryLocation("page=2")
        store, _ = open_view(config, loc)
        store.set_records(_records(12))
        store.update_filters(location="Berlin")
        assert "page" not in _parse(loc.read())

    def test_detach_stops_updates(self, config: ViewConfig) -> None:
        loc = MemoryLocation()
        store, sync = open_view(config, loc)
        sync.detach()
        store.update_filters(score_min=20)
        assert loc.read() == ""

    def test_attach_normalizes_location(self, config: ViewConfig) -> None:
        loc = MemoryLocation("pageSize=7&sortBy=title")
        store = ResultStore(config, decode_query(loc.read(), config))
        UrlSynchronizer(loc, config).attach(store)
        assert loc.read() == "sortBy=title"

    def test_bookmarked_page_survives_until_records_load(self, config: ViewConfig) -> None:
        loc = MemoryLocation("page=3")
        store, _ = open_view(config, loc)
        assert store.state.pagination.page == 3
        assert loc.read() == "page=3"
        store.set_records(_records(12))
        assert store.state.pagination.page == 3
        assert loc.read() == "page=3"

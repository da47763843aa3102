"""Core data models: filter criteria, sort/pagination specs, and the rendered page."""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Records are opaque JSON objects owned by the backend.
Record = Mapping[str, Any]

SCORE_MIN = 0.0
SCORE_MAX = 100.0

SortDirection = Literal["asc", "desc"]


class FilterCriteria(BaseModel):
    """Independently optional filter criteria.

    Frozen. Every field has a "no constraint" default. Fields the user set
    explicitly are tracked in ``model_fields_set``, so an explicit value that
    equals the default still shows up in the summary while filtering treats
    it as no constraint.
    """

    model_config = ConfigDict(frozen=True)

    score_min: float = Field(default=SCORE_MIN, ge=SCORE_MIN, le=SCORE_MAX)
    score_max: float = Field(default=SCORE_MAX, ge=SCORE_MIN, le=SCORE_MAX)
    experience_min: float | None = Field(default=None, ge=0.0)
    experience_max: float | None = Field(default=None, ge=0.0)
    skills: tuple[str, ...] = ()
    location: str = ""
    days_posted: int | None = Field(default=None, ge=1)
    exclude_flagged: bool = False
    query: str = ""
    categories: dict[str, str] = Field(default_factory=dict)

    @field_validator("skills", mode="before")
    @classmethod
    def normalize_skills(cls, v: Any) -> tuple[str, ...]:
        if isinstance(v, str):
            v = v.split(",")
        seen: dict[str, str] = {}
        for skill in v or ():
            cleaned = str(skill).strip()
            if cleaned and cleaned.casefold() not in seen:
                seen[cleaned.casefold()] = cleaned
        return tuple(seen.values())

    @field_validator("location", "query")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("categories")
    @classmethod
    def drop_blank_categories(cls, v: dict[str, str]) -> dict[str, str]:
        return {name: value.strip() for name, value in v.items() if value.strip()}

    def is_default(self, name: str) -> bool:
        """True if field ``name`` holds its no-constraint default value."""
        field = type(self).model_fields[name]
        return getattr(self, name) == field.get_default(call_default_factory=True)

    def explicit_values(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}

    def with_changes(self, **changes: Any) -> "FilterCriteria":
        """Return a validated copy with ``changes`` marked as explicitly set."""
        data = self.explicit_values()
        data.update(changes)
        return type(self).model_validate(data)

    def without(self, *names: str) -> "FilterCriteria":
        """Return a copy where ``names`` fall back to their defaults."""
        data = {k: v for k, v in self.explicit_values().items() if k not in names}
        return type(self).model_validate(data)


class SortSpec(BaseModel):
    """Sort key and direction. Unknown keys are accepted; the sorter falls back."""

    model_config = ConfigDict(frozen=True)

    key: str = "score"
    direction: SortDirection = "desc"

    @property
    def descending(self) -> bool:
        return self.direction == "desc"

    def reversed(self) -> "SortSpec":
        return self.model_copy(update={"direction": "asc" if self.descending else "desc"})


class PaginationSpec(BaseModel):
    """1-based page index and page size."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=5, ge=1)


class ViewState(BaseModel):
    """The three state fragments a view owns."""

    model_config = ConfigDict(frozen=True)

    criteria: FilterCriteria = Field(default_factory=FilterCriteria)
    sort: SortSpec = Field(default_factory=SortSpec)
    pagination: PaginationSpec = Field(default_factory=PaginationSpec)


class Page(BaseModel):
    """One rendered page of records."""

    model_config = ConfigDict(frozen=True)

    items: list[Any]
    page: int
    page_size: int
    total: int
    total_pages: int

    @property
    def start_item(self) -> int:
        """1-based index of the first item shown, 0 when there are none."""
        if self.total == 0 or not self.items:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end_item(self) -> int:
        if not self.items:
            return 0
        return self.start_item + len(self.items) - 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

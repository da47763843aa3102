"""Configuration models and YAML loader for the result views."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from matchview.core.schemas import PaginationSpec, SortSpec, ViewState

MAX_LIMIT = 50


class ApiConfig(BaseModel):
    """Connection settings shared by every view's record source."""

    base_url: str = "http://localhost:8000/api"
    timeout_s: float = Field(default=30.0, gt=0)
    token_env: str = "MATCHVIEW_API_TOKEN"

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ViewSourceConfig(BaseModel):
    """Endpoint a single view fetches its records from."""

    endpoint: str = "/internship/match"
    method: Literal["GET", "POST"] = "GET"
    items_key: str | None = None
    limit_param: str = "top_k"
    limit: int = Field(default=15, ge=1, le=MAX_LIMIT)
    server_side_filters: bool = False


class RecordFields(BaseModel):
    """Which record keys the pipeline reads.

    ``categories`` maps a query-string parameter name to the record key
    compared for exact matches.
    """

    id: str = "id"
    score: str = "match_score"
    title: str = "title"
    skills: str = "required_skills"
    location: str = "location"
    posted_date: str = "posted_date"
    experience: str = "experience_years"
    flagged: str = "is_flagged"
    search: list[str] = Field(
        default_factory=lambda: [
            "title", "description", "company_name", "location", "required_skills",
        ],
    )
    categories: dict[str, str] = Field(
        default_factory=lambda: {"experienceLevel": "experience_level"},
    )


class ExperienceControlConfig(BaseModel):
    """Experience slider: internal unit, domain upper edge and whether thumbs may touch."""

    unit: Literal["months", "years"] = "years"
    domain_max: float = Field(default=10.0, gt=0)
    step: float = Field(default=0.5, gt=0)
    allow_equal: bool = True


class ViewConfig(BaseModel):
    """A single result screen (recommendations, candidate ranking, ...)."""

    title: str = ""
    noun: str = "results"
    source: ViewSourceConfig = Field(default_factory=ViewSourceConfig)
    record_fields: RecordFields = Field(default_factory=RecordFields)
    page_size_options: list[int] = Field(default_factory=lambda: [5, 10, 25, 50, 100])
    default_page_size: int = 5
    sort_keys: list[str] = Field(default_factory=lambda: ["score", "date", "title"])
    sort_by: str = "score"
    sort_order: Literal["asc", "desc"] = "desc"
    experience: ExperienceControlConfig = Field(default_factory=ExperienceControlConfig)

    @field_validator("page_size_options")
    @classmethod
    def page_sizes_positive(cls, v: list[int]) -> list[int]:
        if not v:
            msg = "page_size_options must not be empty"
            raise ValueError(msg)
        if any(size < 1 for size in v):
            msg = "page sizes must be >= 1"
            raise ValueError(msg)
        return sorted(set(v))

    @model_validator(mode="after")
    def defaults_are_options(self) -> "ViewConfig":
        if self.default_page_size not in self.page_size_options:
            msg = (
                f"default_page_size {self.default_page_size} is not one of "
                f"{self.page_size_options}"
            )
            raise ValueError(msg)
        if self.sort_by not in self.sort_keys:
            msg = f"sort_by '{self.sort_by}' is not one of {self.sort_keys}"
            raise ValueError(msg)
        return self

    def default_sort(self) -> SortSpec:
        return SortSpec(key=self.sort_by, direction=self.sort_order)

    def default_pagination(self) -> PaginationSpec:
        return PaginationSpec(page=1, page_size=self.default_page_size)

    def default_state(self) -> ViewState:
        """Fragments a view starts with when the query string says nothing."""
        return ViewState(sort=self.default_sort(), pagination=self.default_pagination())


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    views: dict[str, ViewConfig] = Field(default_factory=dict, validate_default=True)

    @field_validator("views")
    @classmethod
    def at_least_one_view(cls, v: dict[str, ViewConfig]) -> dict[str, ViewConfig]:
        if not v:
            msg = "at least one view must be configured"
            raise ValueError(msg)
        return v

    def view(self, name: str) -> ViewConfig:
        """Return the named view config.

        Raises:
            ValueError: If no view with that name is configured.
        """
        if name not in self.views:
            valid = ", ".join(sorted(self.views))
            msg = f"Unknown view '{name}'. Available: {valid}"
            raise ValueError(msg)
        return self.views[name]

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

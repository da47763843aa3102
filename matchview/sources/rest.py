"""REST record source for recommendation and ranking endpoints."""

import json
import logging
import os
from typing import Any

import httpx

from matchview.core.config import ApiConfig, ViewSourceConfig
from matchview.core.schemas import SCORE_MAX, SCORE_MIN, FilterCriteria, Record
from matchview.sources.base import RecordSource, RecordSourceError

logger = logging.getLogger(__name__)


class HttpRecordSource(RecordSource):
    """Fetches a bounded list of flat JSON records from the matching backend.

    Usage::

        source = HttpRecordSource(settings.api, view.source)
        records = await source.fetch(criteria)
    """

    def __init__(
        self,
        api: ApiConfig,
        source: ViewSourceConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api = api
        self._source = source
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self._api.base_url}/{self._source.endpoint.lstrip('/')}"

    def request_params(self, criteria: FilterCriteria | None = None) -> dict[str, str]:
        params = {self._source.limit_param: str(self._source.limit)}
        if self._source.server_side_filters and criteria is not None:
            params.update(server_params(criteria))
        return params

    def headers(self) -> dict[str, str]:
        token = os.environ.get(self._api.token_env)
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def fetch(self, criteria: FilterCriteria | None = None) -> list[Record]:
        params = self.request_params(criteria)
        logger.info("%s %s %s", self._source.method, self.url, params)
        async with httpx.AsyncClient(
            timeout=self._api.timeout_s,
            transport=self._transport,
        ) as client:
            try:
                response = await client.request(
                    self._source.method,
                    self.url,
                    params=params,
                    headers=self.headers(),
                )
            except httpx.HTTPError as e:
                msg = f"Request to {self.url} failed: {e}"
                raise RecordSourceError(msg) from e

        if response.is_error:
            raise RecordSourceError(
                error_message(response, "Failed to fetch records"),
                status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            msg = f"Response from {self.url} is not JSON"
            raise RecordSourceError(msg, status=response.status_code) from e
        return extract_records(payload, self._source.items_key)


def server_params(criteria: FilterCriteria) -> dict[str, str]:
    """Backend filter parameters for ranking endpoints that narrow server-side.

    Bounds are only sent when they constrain; ``exclude_flagged`` is always sent.
    """
    params: dict[str, str] = {}
    if criteria.score_min > SCORE_MIN:
        params["min_match_score"] = _format(criteria.score_min)
    if criteria.score_max < SCORE_MAX:
        params["max_match_score"] = _format(criteria.score_max)
    if criteria.experience_min is not None and criteria.experience_min > 0:
        params["min_experience"] = _format(criteria.experience_min)
    if criteria.experience_max is not None:
        params["max_experience"] = _format(criteria.experience_max)
    params["exclude_flagged"] = "true" if criteria.exclude_flagged else "false"
    return params


def extract_records(payload: Any, items_key: str | None = None) -> list[Record]:
    """Pull the record array out of a response body; non-object items are dropped."""
    items = payload
    if items_key is not None and isinstance(payload, dict):
        items = payload.get(items_key)
    if items is None:
        return []
    if not isinstance(items, list):
        msg = f"Expected a list of records, got {type(items).__name__}"
        raise RecordSourceError(msg)
    records = [item for item in items if isinstance(item, dict)]
    dropped = len(items) - len(records)
    if dropped:
        logger.warning("Dropped %d non-object records from response", dropped)
    return records


def error_message(response: httpx.Response, fallback: str) -> str:
    """Human-readable message from a backend error body.

    ``detail`` may be a string, a list of validation errors (joined by
    ", ") or any other JSON value (rendered as JSON).
    """
    try:
        body = response.json()
    except ValueError:
        return f"{fallback} (HTTP {response.status_code})"
    detail = body.get("detail") if isinstance(body, dict) else None
    if detail is None:
        return f"{fallback} (HTTP {response.status_code})"
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list):
        return ", ".join(_error_item(e) for e in detail)
    return json.dumps(detail)


def _error_item(item: Any) -> str:
    if isinstance(item, dict):
        message = item.get("msg") or item.get("message")
        if message:
            return str(message)
    return json.dumps(item)


def _format(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)

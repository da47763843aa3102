"""Abstract base class for record sources."""

from abc import ABC, abstractmethod

from matchview.core.schemas import FilterCriteria, Record


class RecordSourceError(Exception):
    """A fetch failed; ``status`` is the HTTP status when there was a response."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RecordSource(ABC):
    """Something that produces the full, unfiltered record array for a view."""

    @abstractmethod
    async def fetch(self, criteria: FilterCriteria | None = None) -> list[Record]:
        """Return the records. ``criteria`` is a hint for server-side narrowing.

        Raises:
            RecordSourceError: If the records cannot be obtained.
        """


class StaticRecordSource(RecordSource):
    """Serves a fixed array, e.g. records loaded from a JSON export."""

    def __init__(self, records: list[Record]) -> None:
        self._records = list(records)

    async def fetch(self, criteria: FilterCriteria | None = None) -> list[Record]:
        return list(self._records)

"""Exception hierarchy for hidb.

Decomposition and location failures are expected while matching and are
normally converted into ``None``/empty results close to where they occur.
Only exact-match, catalog-selection and import-policy errors reach callers.
"""

from __future__ import annotations

from collections.abc import Sequence


class HiDbError(Exception):
    """Base class for all hidb errors."""


class ParseFailure(HiDbError):
    """A virus name does not decompose into its structured fields."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Cannot decompose virus name: {name!r}")
        self.name = name


class LocationNotFound(HiDbError, KeyError):
    """The location service does not know a location."""

    def __init__(self, location: str) -> None:
        super().__init__(location)
        self.location = location

    def __str__(self) -> str:
        return f"Location not found: {self.location!r}"


class NotFound(HiDbError, KeyError):
    """An exact lookup produced no record."""

    def __init__(self, query: str, considered: Sequence[str] = ()) -> None:
        super().__init__(query)
        self.query = query
        self.considered = tuple(considered)

    def __str__(self) -> str:
        message = f"Not found: {self.query!r}"
        if self.considered:
            message += f" (considered: {', '.join(self.considered)})"
        return message


class DuplicateTable(HiDbError, ValueError):
    """A chart with the same table id is already merged."""

    def __init__(self, table_id: str) -> None:
        super().__init__(f"Chart {table_id} already in hidb")
        self.table_id = table_id


class UnsupportedCatalog(HiDbError):
    """No catalog is available for the requested partition."""


class IndexNotCurrent(HiDbError):
    """The name index was built from an older catalog state."""


class InvalidPayload(HiDbError, ValueError):
    """A chart, snapshot or location file failed schema validation."""

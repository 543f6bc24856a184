"""Base class for catalog snapshot backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from hidb.locations import LocationService

if TYPE_CHECKING:
    from hidb.database import HiDb


class CatalogStorage(ABC):
    """Persists and restores a merged catalog together with its chart table."""

    @abstractmethod
    def persist(self, hidb: "HiDb") -> None:
        """Write the catalog in backend-specific format."""

    @abstractmethod
    def restore(self, locations: LocationService) -> "HiDb":
        """Load a catalog and return it indexed and ready to query."""

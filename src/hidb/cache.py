"""Caller-owned cache of catalogs, one per virus type."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from hidb.config import CatalogFileLayout, VirusType
from hidb.database import HiDb
from hidb.errors import UnsupportedCatalog
from hidb.locations import LocationDb
from hidb.storage import CatalogStorage, JsonSnapshotStorage

logger = logging.getLogger("hidb.cache")

StorageFactory = Callable[[Path], CatalogStorage]


def _json_storage(path: Path) -> CatalogStorage:
    return JsonSnapshotStorage(path=path)


class HiDbSet:
    """Open catalogs lazily by virus type and keep them until invalidated.

    The location db is loaded on first use and shared by every catalog.
    """

    def __init__(
        self,
        layout: CatalogFileLayout,
        *,
        storage_factory: StorageFactory = _json_storage,
        locations: LocationDb | None = None,
    ) -> None:
        self.layout = layout
        self.storage_factory = storage_factory
        self._locations = locations
        self._catalogs: dict[VirusType, HiDb] = {}

    @property
    def locations(self) -> LocationDb:
        if self._locations is None:
            self._locations = LocationDb.from_json(self.layout.locations_path())
        return self._locations

    def get(self, virus_type: str | VirusType) -> HiDb:
        """Return the catalog for ``virus_type``, loading it on first access."""

        key = self._virus_type(virus_type)
        hidb = self._catalogs.get(key)
        if hidb is None:
            hidb = self._load(key)
            self._catalogs[key] = hidb
        return hidb

    def loaded(self) -> list[VirusType]:
        return sorted(self._catalogs, key=lambda item: item.value)

    def invalidate(self, virus_type: str | VirusType | None = None) -> None:
        """Drop one cached catalog, or all of them and the location db."""

        if virus_type is None:
            self._catalogs.clear()
            self._locations = None
            return
        self._catalogs.pop(self._virus_type(virus_type), None)

    def reload(self, virus_type: str | VirusType) -> HiDb:
        self.invalidate(virus_type)
        return self.get(virus_type)

    def _load(self, virus_type: VirusType) -> HiDb:
        path = self.layout.catalog_path(virus_type)
        if path is None:
            raise UnsupportedCatalog(f"No hidb for {virus_type.value}")
        logger.info("Opening %s catalog from %s", virus_type.value, path)
        return self.storage_factory(path).restore(self.locations)

    @staticmethod
    def _virus_type(value: str | VirusType) -> VirusType:
        try:
            return VirusType.parse(value)
        except ValueError:
            raise UnsupportedCatalog(f"No hidb for {value}") from None

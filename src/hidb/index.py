"""Location-keyed index over catalog antigens and the reference views it returns."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import overload

from hidb.catalog import Catalog
from hidb.config import DEFAULT_SETTINGS, MatchSettings
from hidb.locations import LocationService
from hidb.models import CanonicalAntigen
from hidb.names import NameParts, decompose, is_cdc_name

logger = logging.getLogger("hidb.index")


class AntigenRefs(Sequence[CanonicalAntigen]):
    """Ordered view of catalog antigens addressed by arena index.

    Filters return new views, so calls can be chained::

        refs.filter_by_country("AUSTRALIA").filter_by_date_range("2009-01")
    """

    def __init__(
        self,
        catalog: Catalog,
        indices: Iterable[int],
        locations: LocationService,
    ) -> None:
        self._catalog = catalog
        self._indices = list(indices)
        self._locations = locations

    @property
    def indices(self) -> list[int]:
        return list(self._indices)

    def __len__(self) -> int:
        return len(self._indices)

    @overload
    def __getitem__(self, position: int) -> CanonicalAntigen: ...

    @overload
    def __getitem__(self, position: slice) -> "AntigenRefs": ...

    def __getitem__(self, position):
        if isinstance(position, slice):
            return self._derive(self._indices[position])
        return self._catalog.antigen(self._indices[position])

    def __iter__(self) -> Iterator[CanonicalAntigen]:
        for index in self._indices:
            yield self._catalog.antigen(index)

    def __repr__(self) -> str:
        return f"AntigenRefs({len(self)} antigens)"

    def _derive(self, indices: Iterable[int]) -> "AntigenRefs":
        return AntigenRefs(self._catalog, indices, self._locations)

    def filter_by_country(self, country: str) -> "AntigenRefs":
        """Keep antigens whose name location resolves to ``country``."""

        wanted = country.strip().upper()

        def in_country(antigen: CanonicalAntigen) -> bool:
            location = self._locations.find(antigen.data.location)
            return location is not None and location.country == wanted

        return self._derive(
            index for index in self._indices if in_country(self._catalog.antigen(index))
        )

    def filter_by_date_range(self, begin: str = "", end: str = "") -> "AntigenRefs":
        """Keep antigens dated within ``[begin, end)``.

        An empty bound leaves that side open. Undated antigens are dropped as
        soon as either bound is given.
        """

        if not begin and not end:
            return self._derive(self._indices)

        def in_range(antigen: CanonicalAntigen) -> bool:
            date = antigen.date()
            if not date:
                return False
            if begin and date < begin:
                return False
            if end and date >= end:
                return False
            return True

        return self._derive(
            index for index in self._indices if in_range(self._catalog.antigen(index))
        )


class NameIndex:
    """Buckets of antigen arena indices keyed by a location prefix.

    Decomposable names are keyed by the first ``index_key_size`` characters
    of their canonical location. Names that do not decompose but look like
    CDC names are keyed by their own leading characters. The index must be
    rebuilt after every catalog mutation.
    """

    def __init__(self, settings: MatchSettings = DEFAULT_SETTINGS) -> None:
        self.settings = settings
        self._buckets: dict[str, list[int]] = {}
        self._parts: dict[int, NameParts] = {}
        self.generation: int | None = None

    def rebuild(self, catalog: Catalog, locations: LocationService) -> None:
        self._buckets.clear()
        self._parts.clear()
        unindexed = 0

        for index in catalog.antigen_indices():
            name = catalog.antigen(index).name
            key = self._key_for_name(name, locations, index)
            if key is None:
                unindexed += 1
                continue
            self._buckets.setdefault(key, []).append(index)

        self.generation = catalog.generation
        logger.info(
            "Index rebuilt: %d antigens in %d buckets, %d not indexed",
            catalog.number_of_antigens() - unindexed,
            len(self._buckets),
            unindexed,
        )

    def _key_for_name(self, name: str, locations: LocationService, index: int) -> str | None:
        parts = decompose(name)
        if parts is None:
            if is_cdc_name(name):
                return self.raw_key(name)
            return None

        location = locations.find(parts.location)
        if location is None:
            logger.debug("Unrecognized location %r in %s", parts.location, name)
            return None

        self._parts[index] = dataclasses.replace(parts, location=location.name)
        return self.location_key(location.name)

    def location_key(self, canonical_location: str) -> str:
        return canonical_location[: self.settings.index_key_size]

    def raw_key(self, text: str) -> str:
        return text[: self.settings.index_key_size]

    def lookup_bucket(self, key: str) -> list[int] | None:
        bucket = self._buckets.get(key)
        return list(bucket) if bucket is not None else None

    def parts_for(self, index: int) -> NameParts | None:
        """Decomposed name of an indexed antigen, with its canonical location."""

        return self._parts.get(index)

    def is_current(self, catalog: Catalog) -> bool:
        return self.generation == catalog.generation

    def keys(self) -> list[str]:
        return sorted(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

"""Location lookup used to bucket and filter catalog entries."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from hidb.errors import LocationNotFound
from hidb.payloads import read_json, validate

logger = logging.getLogger("hidb.locations")


@dataclass(frozen=True)
class Location:
    """Canonical location with its country and continent."""

    name: str
    country: str
    continent: str


class LocationService(Protocol):
    """Interface the catalog needs from a location database."""

    def find(self, text: str) -> Location | None:
        """Return the location for ``text`` or ``None`` when unknown."""

    def resolve(self, text: str) -> Location:
        """Return the location for ``text`` or raise :class:`LocationNotFound`."""


class LocationDb:
    """In-memory location database keyed by upper-case names and aliases."""

    def __init__(
        self,
        locations: Iterable[Location] = (),
        aliases: Mapping[str, str] | None = None,
    ) -> None:
        self._locations: dict[str, Location] = {}
        self._aliases: dict[str, str] = {}
        for location in locations:
            self.add(location)
        for alias, name in (aliases or {}).items():
            self.add_alias(alias, name)

    def add(self, location: Location) -> None:
        key = self._normalize(location.name)
        self._locations[key] = Location(
            name=key,
            country=location.country.strip().upper(),
            continent=location.continent.strip().upper(),
        )

    def add_alias(self, alias: str, name: str) -> None:
        target = self._normalize(name)
        if target not in self._locations:
            raise LocationNotFound(name)
        self._aliases[self._normalize(alias)] = target

    def find(self, text: str) -> Location | None:
        key = self._normalize(text)
        key = self._aliases.get(key, key)
        return self._locations.get(key)

    def resolve(self, text: str) -> Location:
        location = self.find(text)
        if location is None:
            raise LocationNotFound(text)
        return location

    def country(self, text: str) -> str:
        return self.resolve(text).country

    def continent(self, text: str, default: str | None = None) -> str:
        location = self.find(text)
        if location is None:
            if default is None:
                raise LocationNotFound(text)
            return default
        return location.continent

    def __len__(self) -> int:
        return len(self._locations)

    def __contains__(self, text: object) -> bool:
        return isinstance(text, str) and self.find(text) is not None

    @staticmethod
    def _normalize(text: str) -> str:
        return " ".join(text.split()).upper()

    @classmethod
    def from_json(cls, path: str | Path) -> "LocationDb":
        """Load a location db file (``.json`` or ``.json.xz``).

        Expected format::

            {"locations": {"PERTH": {"country": "AUSTRALIA",
                                     "continent": "AUSTRALIA-OCEANIA"}},
             "aliases": {"PERTH WA": "PERTH"}}
        """

        payload = read_json(path)
        validate(payload, "locationdb", source=path)

        db = cls()
        for name, details in payload["locations"].items():
            db.add(Location(name=name, country=details["country"], continent=details["continent"]))
        for alias, name in payload.get("aliases", {}).items():
            db.add_alias(alias, name)

        logger.info("Loaded %d locations from %s", len(db), path)
        return db

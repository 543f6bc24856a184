"""Query engine over a merged antigen/serum catalog."""

from __future__ import annotations

import dataclasses
import itertools
import logging
from collections import Counter, defaultdict
from collections.abc import Iterable

import pandas as pd

from hidb.catalog import Catalog, MergeReport
from hidb.config import DEFAULT_SETTINGS, MatchSettings
from hidb.errors import IndexNotCurrent, NotFound
from hidb.index import AntigenRefs, NameIndex
from hidb.locations import LocationDb, LocationService
from hidb.matching.scoring import ScoredMatch, rank
from hidb.models import CanonicalAntigen, CanonicalSerum, Chart
from hidb.names import decompose, is_cdc_name

logger = logging.getLogger("hidb.query")

UNKNOWN_COUNTRY = "**UNKNOWN"
UNKNOWN_CONTINENT = "UNKNOWN"

AntigenStat = dict[str, dict[str, dict[str, dict[str, int]]]]


class HiDb:
    """Merged catalog of antigens and sera with name lookup.

    Usage follows three phases: merge charts, call :meth:`rebuild_index`,
    then query. Index-backed queries raise :class:`IndexNotCurrent` if the
    catalog changed after the last rebuild.
    """

    def __init__(
        self,
        locations: LocationService | None = None,
        *,
        settings: MatchSettings = DEFAULT_SETTINGS,
        catalog: Catalog | None = None,
    ) -> None:
        self.locations: LocationService = locations if locations is not None else LocationDb()
        self.settings = settings
        self.catalog = catalog if catalog is not None else Catalog()
        self.index = NameIndex(settings)

    # -- import phase ----------------------------------------------------

    def merge(self, chart: Chart) -> MergeReport:
        return self.catalog.merge(chart)

    def merge_all(self, charts: Iterable[Chart], *, rebuild: bool = True) -> list[MergeReport]:
        """Merge a batch of charts and, by default, rebuild the index once."""

        reports = [self.catalog.merge(chart) for chart in charts]
        if rebuild:
            self.rebuild_index()
        return reports

    def rebuild_index(self) -> None:
        self.index.rebuild(self.catalog, self.locations)

    def _require_index(self) -> None:
        if not self.index.is_current(self.catalog):
            raise IndexNotCurrent(
                "Catalog changed since the name index was built; call rebuild_index()"
            )

    def _refs(self, indices: Iterable[int]) -> AntigenRefs:
        return AntigenRefs(self.catalog, indices, self.locations)

    # -- antigen lookup --------------------------------------------------

    def find_candidates(self, query: str) -> AntigenRefs:
        """Antigens that may match ``query``, in catalog order."""

        self._require_index()
        query = query.strip()

        parts = decompose(query)
        if parts is not None:
            location = self.locations.find(parts.location)
            if location is None:
                logger.info("Location not found: %s", parts.location)
                return self._refs([])

            bucket = self.index.lookup_bucket(self.index.location_key(location.name)) or []
            wanted = dataclasses.replace(parts, location=location.name)
            return self._refs(
                index
                for index in bucket
                if (candidate := self.index.parts_for(index)) is not None
                and candidate.same_strain(wanted)
            )

        if is_cdc_name(query):
            return self._refs(self._find_cdc_name(query))
        return self._refs([])

    def _find_cdc_name(self, query: str) -> list[int]:
        bucket = self.index.lookup_bucket(self.index.raw_key(query))
        if bucket is None:
            return []

        for index in bucket:
            if self.catalog.antigen(index).full_name == query:
                return [index]

        space = query.find(" ", 3)
        prefix = query if space < 0 else query[:space]
        found = [
            index for index in bucket if self.catalog.antigen(index).full_name.startswith(prefix)
        ]
        if found:
            return found

        # Low-confidence suggestions: everything sharing the CDC abbreviation.
        return [
            index for index in bucket if self.catalog.antigen(index).full_name[:2] == query[:2]
        ]

    def find_antigens(self, query: str) -> list[CanonicalAntigen]:
        """Best-ranked antigens among the indexed candidates for ``query``."""

        return list(self.find_antigen_refs(query))

    def find_antigen_refs(self, query: str) -> AntigenRefs:
        """Same result as :meth:`find_antigens`, as a filterable view."""

        candidates = self.find_candidates(query)
        index_of = {id(antigen): index for index, antigen in zip(candidates.indices, candidates)}
        return self._refs(
            index_of[id(scored.record)] for scored in rank(query, candidates, self.settings)
        )

    def find_antigens_with_score(self, query: str) -> list[ScoredMatch[CanonicalAntigen]]:
        """Best-ranked antigens of the whole catalog with their scores."""

        return rank(query, self.catalog.antigens(), self.settings)

    def find_antigens_exact(self, query: str) -> CanonicalAntigen:
        candidates = self.find_candidates(query)
        for antigen in candidates:
            if antigen.data.name_for_exact_matching == query:
                return antigen
        raise NotFound(query, [antigen.full_name for antigen in candidates])

    def find_antigens_fuzzy(self, query: str) -> list[CanonicalAntigen]:
        """Rank every antigen in the query's index bucket, ignoring name fields."""

        self._require_index()
        key = self._index_key(query.strip())
        bucket = self.index.lookup_bucket(key) if key is not None else None
        if not bucket:
            return []
        return [scored.record for scored in rank(query, self._refs(bucket), self.settings)]

    def find_antigens_extra_fuzzy(self, query: str) -> list[CanonicalAntigen]:
        """Rank the whole catalog without index narrowing."""

        return [scored.record for scored in self.find_antigens_with_score(query)]

    def _index_key(self, query: str) -> str | None:
        parts = decompose(query)
        if parts is not None:
            location = self.locations.find(parts.location)
            return self.index.location_key(location.name) if location is not None else None
        if is_cdc_name(query):
            return self.index.raw_key(query)
        return None

    def find_antigens_by_lab_id(self, lab_id: str) -> AntigenRefs:
        """Antigens carrying ``lab_id``; bare digits are treated as CDC ids."""

        lab_id = lab_id.strip()
        if lab_id[:1].isdigit():
            lab_id = "CDC#" + lab_id
        return self._refs(
            index
            for index in self.catalog.antigen_indices()
            if self.catalog.antigen(index).has_lab_id(lab_id)
        )

    def find_antigens_by_name(self, name: str) -> AntigenRefs:
        """Every variant whose bare name is exactly ``name``."""

        return self._refs(self.catalog.antigen_indices_named(name.strip()))

    def all_antigens(self) -> AntigenRefs:
        return self._refs(self.catalog.antigen_indices())

    def list_antigen_names(self) -> list[str]:
        return list(dict.fromkeys(antigen.name for antigen in self.catalog.antigens()))

    # -- serum lookup ----------------------------------------------------

    def find_sera(self, query: str) -> list[CanonicalSerum]:
        return [scored.record for scored in self.find_sera_with_score(query)]

    def find_sera_with_score(self, query: str) -> list[ScoredMatch[CanonicalSerum]]:
        return rank(query, self.catalog.sera(), self.settings)

    def find_sera_exact(self, query: str) -> CanonicalSerum:
        for serum in self.catalog.sera():
            if serum.data.name_for_exact_matching == query:
                return serum
        raise NotFound(query)

    def list_serum_names(self) -> list[str]:
        return list(dict.fromkeys(serum.name for serum in self.catalog.sera()))

    # -- locations and statistics ----------------------------------------

    def all_countries(self) -> list[str]:
        """Countries of all antigen locations; unknown ones as ``**UNKNOWN``."""

        locations = {antigen.data.location for antigen in self.catalog.antigens()}
        locations.discard("")
        countries = set()
        for name in locations:
            location = self.locations.find(name)
            countries.add(location.country if location is not None else UNKNOWN_COUNTRY)
        return sorted(countries)

    def unrecognized_locations(self) -> list[str]:
        """Locations in antigen and serum names that the location db lacks."""

        names = {antigen.data.location for antigen in self.catalog.antigens()}
        names.update(serum.data.location for serum in self.catalog.sera())
        names.discard("")
        return sorted(name for name in names if self.locations.find(name) is None)

    def stat(self) -> AntigenStat:
        """Count distinct antigen names by virus type, lab, year-month and continent.

        Each name is counted once, in the chart where it was first seen.
        """

        counts: dict[str, dict[str, dict[str, Counter[str]]]] = defaultdict(
            lambda: defaultdict(lambda: defaultdict(Counter))
        )
        total = 0
        for name, group in itertools.groupby(self.catalog.antigens(), key=lambda ag: ag.name):
            antigen = min(group, key=lambda ag: ag.earliest_table().table_id)
            location = self.locations.find(antigen.data.location)
            continent = location.continent if location is not None else UNKNOWN_CONTINENT

            date = antigen.date()
            if date:
                year_month = date[:4] + date[5:7]
            else:
                year_month = antigen.data.year or "????"

            info = self.catalog.chart(antigen.earliest_table().table_id).info
            counts[info.virus_type][info.lab][year_month][continent] += 1
            total += 1

        logger.info("Total: %d", total)
        return {
            virus_type: {
                lab: {year_month: dict(by_continent) for year_month, by_continent in by_date.items()}
                for lab, by_date in by_lab.items()
            }
            for virus_type, by_lab in counts.items()
        }

    def stat_frame(self) -> pd.DataFrame:
        """:meth:`stat` flattened into one row per count."""

        rows = [
            {
                "virus_type": virus_type,
                "lab": lab,
                "year_month": year_month,
                "continent": continent,
                "count": count,
            }
            for virus_type, by_lab in self.stat().items()
            for lab, by_date in by_lab.items()
            for year_month, by_continent in by_date.items()
            for continent, count in by_continent.items()
        ]
        frame = pd.DataFrame(rows, columns=["virus_type", "lab", "year_month", "continent", "count"])
        return frame.sort_values(["virus_type", "lab", "year_month", "continent"]).reset_index(drop=True)

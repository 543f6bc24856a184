"""Canonical catalog of antigens and sera merged from many charts.

Records live in append-only arenas and are addressed by their arena index.
A separate permutation keeps them sorted by ``(name, variant_id)``, so an
index into the arena stays valid across later inserts.
"""

from __future__ import annotations

import bisect
import dataclasses
import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

from hidb.errors import DuplicateTable
from hidb.models import (
    Antigen,
    CanonicalAntigen,
    CanonicalSerum,
    Chart,
    ChartDescriptor,
    Serum,
)

logger = logging.getLogger("hidb.catalog")

C = TypeVar("C", CanonicalAntigen, CanonicalSerum)

Key = tuple[str, str]


class SortedArena(Generic[C]):
    """Append-only storage plus a permutation sorted by record key."""

    def __init__(self) -> None:
        self._items: list[C] = []
        self._order: list[int] = []
        self._keys: list[Key] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[C]:
        for index in self._order:
            yield self._items[index]

    def __getitem__(self, index: int) -> C:
        return self._items[index]

    def indices(self) -> list[int]:
        """Arena indices in catalog order."""

        return list(self._order)

    def find(self, key: Key) -> int | None:
        position = bisect.bisect_left(self._keys, key)
        if position < len(self._keys) and self._keys[position] == key:
            return self._order[position]
        return None

    def find_name(self, name: str) -> list[int]:
        """Arena indices of every record called ``name``, in catalog order."""

        position = bisect.bisect_left(self._keys, (name,))
        end = position
        while end < len(self._keys) and self._keys[end][0] == name:
            end += 1
        return self._order[position:end]

    def find_or_insert(self, key: Key, factory: Callable[[], C]) -> tuple[int, bool]:
        """Return ``(arena_index, created)`` for ``key``, inserting if absent."""

        position = bisect.bisect_left(self._keys, key)
        if position < len(self._keys) and self._keys[position] == key:
            return self._order[position], False

        index = len(self._items)
        self._items.append(factory())
        self._order.insert(position, index)
        self._keys.insert(position, key)
        return index, True

    def append_trusted(self, item: C) -> int:
        """Append ``item`` after the current last key without re-sorting."""

        index = len(self._items)
        self._items.append(item)
        self._order.append(index)
        self._keys.append(item.key())
        return index

    def is_sorted(self) -> bool:
        return all(left < right for left, right in zip(self._keys, self._keys[1:]))


@dataclass
class MergeReport:
    """Counts describing what one chart contributed to the catalog.

    ``updated_*`` counts every record that attached to an existing canonical
    entry, including a second listing of the same record within the chart.
    """

    table_id: str
    new_antigens: int = 0
    updated_antigens: int = 0
    new_sera: int = 0
    updated_sera: int = 0
    skipped: int = 0
    homologous_links: int = 0


class Catalog:
    """Sorted, deduplicated antigens and sera plus the table of merged charts."""

    def __init__(self) -> None:
        self._antigens: SortedArena[CanonicalAntigen] = SortedArena()
        self._sera: SortedArena[CanonicalSerum] = SortedArena()
        self._charts: list[ChartDescriptor] = []
        self._chart_ids: list[str] = []
        self.generation = 0

    # -- merging ---------------------------------------------------------

    def merge(self, chart: Chart) -> MergeReport:
        """Merge every mergeable antigen and serum of ``chart``.

        Raises :class:`DuplicateTable` without touching the catalog when the
        chart's table id was merged before.
        """

        table_id = chart.table_id
        position = bisect.bisect_left(self._chart_ids, table_id)
        if position < len(self._chart_ids) and self._chart_ids[position] == table_id:
            raise DuplicateTable(table_id)

        logger.info("Merging chart %s", table_id)
        self._charts.insert(position, ChartDescriptor.from_chart(chart))
        self._chart_ids.insert(position, table_id)

        report = MergeReport(table_id=table_id)
        for antigen in chart.antigens:
            self._merge_antigen(antigen, table_id, report)
        for serum in chart.sera:
            self._merge_serum(serum, table_id, chart.antigens, report)

        self.generation += 1
        logger.debug(
            "Chart %s: %d new and %d updated antigens, %d new and %d updated sera, %d skipped",
            table_id,
            report.new_antigens,
            report.updated_antigens,
            report.new_sera,
            report.updated_sera,
            report.skipped,
        )
        return report

    def _merge_antigen(self, antigen: Antigen, table_id: str, report: MergeReport) -> None:
        if antigen.distinct:
            report.skipped += 1
            return

        index, created = self._antigens.find_or_insert(
            antigen.key(),
            lambda: CanonicalAntigen(data=_copy_antigen(antigen)),
        )
        self._antigens[index].update(table_id, antigen)
        if created:
            report.new_antigens += 1
        else:
            report.updated_antigens += 1

    def _merge_serum(
        self,
        serum: Serum,
        table_id: str,
        chart_antigens: list[Antigen],
        report: MergeReport,
    ) -> None:
        if serum.distinct:
            report.skipped += 1
            return

        index, created = self._sera.find_or_insert(
            serum.key(),
            lambda: CanonicalSerum(data=_copy_serum(serum)),
        )
        canonical = self._sera[index]
        canonical.update(table_id, serum)
        if created:
            report.new_sera += 1
        else:
            report.updated_sera += 1

        if serum.homologous is None:
            return
        if not 0 <= serum.homologous < len(chart_antigens):
            logger.warning(
                "Serum %s in %s refers to antigen %d, chart has %d antigens",
                serum.full_name,
                table_id,
                serum.homologous,
                len(chart_antigens),
            )
            return
        canonical.set_homologous(table_id, chart_antigens[serum.homologous].variant_id)
        report.homologous_links += 1

    def restore(
        self,
        antigens: Iterable[CanonicalAntigen],
        sera: Iterable[CanonicalSerum],
        charts: Iterable[ChartDescriptor],
    ) -> None:
        """Append already sorted records, e.g. from a snapshot.

        The order is trusted and not verified.
        """

        for antigen in antigens:
            self._antigens.append_trusted(antigen)
        for serum in sera:
            self._sera.append_trusted(serum)
        for chart in charts:
            self._charts.append(chart)
            self._chart_ids.append(chart.table_id)
        self.generation += 1

    # -- read access -----------------------------------------------------

    def antigens(self) -> Iterator[CanonicalAntigen]:
        return iter(self._antigens)

    def sera(self) -> Iterator[CanonicalSerum]:
        return iter(self._sera)

    def antigen(self, index: int) -> CanonicalAntigen:
        return self._antigens[index]

    def serum(self, index: int) -> CanonicalSerum:
        return self._sera[index]

    def antigen_indices(self) -> list[int]:
        return self._antigens.indices()

    def serum_indices(self) -> list[int]:
        return self._sera.indices()

    def number_of_antigens(self) -> int:
        return len(self._antigens)

    def number_of_sera(self) -> int:
        return len(self._sera)

    def find_antigen_key(self, name: str, variant_id: str) -> int | None:
        return self._antigens.find((name, variant_id))

    def find_serum_key(self, name: str, variant_id: str) -> int | None:
        return self._sera.find((name, variant_id))

    def antigen_indices_named(self, name: str) -> list[int]:
        return self._antigens.find_name(name)

    def is_sorted(self) -> bool:
        return self._antigens.is_sorted() and self._sera.is_sorted()

    def charts(self) -> list[ChartDescriptor]:
        return list(self._charts)

    def chart(self, table_id: str) -> ChartDescriptor:
        position = bisect.bisect_left(self._chart_ids, table_id)
        if position < len(self._chart_ids) and self._chart_ids[position] == table_id:
            return self._charts[position]
        raise KeyError(f"Unknown table: {table_id}")

    def has_chart(self, table_id: str) -> bool:
        position = bisect.bisect_left(self._chart_ids, table_id)
        return position < len(self._chart_ids) and self._chart_ids[position] == table_id


def _copy_antigen(antigen: Antigen) -> Antigen:
    return dataclasses.replace(
        antigen,
        annotations=list(antigen.annotations),
        lab_ids=list(antigen.lab_ids),
        clades=list(antigen.clades),
    )


def _copy_serum(serum: Serum) -> Serum:
    # Homologous indices are chart-local; the canonical serum keeps links per table.
    return dataclasses.replace(serum, annotations=list(serum.annotations), homologous=None)

"""In-memory data models for charts and the canonical catalog."""

from __future__ import annotations

import bisect
from dataclasses import asdict, dataclass, field
from typing import Any

from hidb.names import decompose


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)


@dataclass
class AntigenSerumRecord:
    """Fields shared by antigens and sera as they appear in a chart.

    ``distinct`` marks chart-local records that must not be merged into the
    catalog.
    """

    name: str
    lineage: str = ""
    passage: str = ""
    reassortant: str = ""
    annotations: list[str] = field(default_factory=list)
    distinct: bool = False

    def _variant_tail(self) -> str:
        return self.passage

    @property
    def variant_id(self) -> str:
        """Qualifiers telling apart biologically distinct entries with one name."""

        return _join(self.reassortant, *self.annotations, self._variant_tail())

    @property
    def full_name(self) -> str:
        return _join(self.name, self.variant_id)

    @property
    def name_for_exact_matching(self) -> str:
        return self.full_name

    @property
    def location(self) -> str:
        parts = decompose(self.name)
        return parts.location if parts is not None else ""

    @property
    def year(self) -> str:
        parts = decompose(self.name)
        return parts.year if parts is not None else ""

    def key(self) -> tuple[str, str]:
        """Sort and deduplication key in the catalog."""

        return (self.name, self.variant_id)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name}
        for key in ("lineage", "passage", "reassortant"):
            value = getattr(self, key)
            if value:
                payload[key] = value
        if self.annotations:
            payload["annotations"] = list(self.annotations)
        return payload


@dataclass
class Antigen(AntigenSerumRecord):
    date: str = ""
    lab_ids: list[str] = field(default_factory=list)
    clades: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.date:
            payload["date"] = self.date
        if self.lab_ids:
            payload["lab_ids"] = list(self.lab_ids)
        if self.clades:
            payload["clades"] = list(self.clades)
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Antigen":
        return cls(
            name=str(payload["name"]).strip(),
            lineage=payload.get("lineage", ""),
            passage=payload.get("passage", ""),
            reassortant=payload.get("reassortant", ""),
            annotations=list(payload.get("annotations", [])),
            distinct=bool(payload.get("distinct", False)),
            date=payload.get("date", ""),
            lab_ids=list(payload.get("lab_ids", [])),
            clades=list(payload.get("clades", [])),
        )


@dataclass
class Serum(AntigenSerumRecord):
    serum_id: str = ""
    serum_species: str = ""
    homologous: int | None = None

    def _variant_tail(self) -> str:
        return self.serum_id

    @property
    def has_homologous(self) -> bool:
        return self.homologous is not None

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.serum_id:
            payload["serum_id"] = self.serum_id
        if self.serum_species:
            payload["serum_species"] = self.serum_species
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Serum":
        homologous = payload.get("homologous")
        return cls(
            name=str(payload["name"]).strip(),
            lineage=payload.get("lineage", ""),
            passage=payload.get("passage", ""),
            reassortant=payload.get("reassortant", ""),
            annotations=list(payload.get("annotations", [])),
            distinct=bool(payload.get("distinct", False)),
            serum_id=payload.get("serum_id", ""),
            serum_species=payload.get("serum_species", ""),
            homologous=int(homologous) if homologous is not None else None,
        )


@dataclass(frozen=True)
class PerTableEntry:
    """Membership of a canonical record in one source table."""

    table_id: str
    date: str = ""


@dataclass
class _CanonicalBase:
    tables: list[PerTableEntry] = field(default_factory=list)

    def _add_table(self, table_id: str, date: str = "") -> None:
        table_ids = [entry.table_id for entry in self.tables]
        position = bisect.bisect_left(table_ids, table_id)
        if position < len(table_ids) and table_ids[position] == table_id:
            return
        self.tables.insert(position, PerTableEntry(table_id=table_id, date=date))

    def number_of_tables(self) -> int:
        return len(self.tables)

    def most_recent_table(self) -> PerTableEntry:
        return self.tables[-1]

    def earliest_table(self) -> PerTableEntry:
        return self.tables[0]

    def in_table(self, table_id: str) -> bool:
        return any(entry.table_id == table_id for entry in self.tables)


@dataclass
class CanonicalAntigen(_CanonicalBase):
    """Deduplicated antigen with the tables it was seen in."""

    data: Antigen = field(default_factory=lambda: Antigen(name=""))

    @property
    def name(self) -> str:
        return self.data.name

    @property
    def full_name(self) -> str:
        return self.data.full_name

    def key(self) -> tuple[str, str]:
        return self.data.key()

    def update(self, table_id: str, antigen: Antigen) -> None:
        """Record that ``antigen`` appears in ``table_id``."""

        self._add_table(table_id, antigen.date)
        for lab_id in antigen.lab_ids:
            if lab_id not in self.data.lab_ids:
                self.data.lab_ids.append(lab_id)
        for clade in antigen.clades:
            if clade not in self.data.clades:
                self.data.clades.append(clade)

    def date(self) -> str:
        """Most recent isolation date seen in any table, ``""`` if none."""

        dates = [entry.date for entry in self.tables if entry.date]
        return max(dates) if dates else ""

    def has_lab_id(self, lab_id: str) -> bool:
        return lab_id in self.data.lab_ids


@dataclass
class CanonicalSerum(_CanonicalBase):
    """Deduplicated serum with the tables it was seen in."""

    data: Serum = field(default_factory=lambda: Serum(name=""))
    homologous: dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.data.name

    @property
    def full_name(self) -> str:
        return self.data.full_name

    def key(self) -> tuple[str, str]:
        return self.data.key()

    def update(self, table_id: str, serum: Serum) -> None:
        self._add_table(table_id)

    def set_homologous(self, table_id: str, antigen_variant_id: str) -> None:
        self.homologous[table_id] = antigen_variant_id

    def homologous_for(self, table_id: str) -> str | None:
        """Variant id of the antigen this serum was raised against in a table."""

        return self.homologous.get(table_id)


@dataclass(frozen=True)
class ChartInfo:
    virus_type: str
    lab: str
    date: str
    assay: str = "HI"

    def default_table_id(self) -> str:
        return ":".join((self.virus_type, self.assay, self.lab, self.date))

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ChartInfo":
        return cls(
            virus_type=str(payload["virus_type"]).strip(),
            lab=str(payload["lab"]).strip().upper(),
            date=str(payload.get("date", "")).strip(),
            assay=str(payload.get("assay", "HI")).strip().upper() or "HI",
        )


@dataclass
class Chart:
    """One imported assay table as delivered by a chart adapter."""

    table_id: str
    info: ChartInfo
    antigens: list[Antigen] = field(default_factory=list)
    sera: list[Serum] = field(default_factory=list)
    titers: list[list[str]] = field(default_factory=list)


@dataclass
class ChartDescriptor:
    """What the catalog keeps about each merged chart."""

    table_id: str
    info: ChartInfo
    antigens: list[tuple[str, str]] = field(default_factory=list)
    sera: list[tuple[str, str]] = field(default_factory=list)
    titers: list[list[str]] = field(default_factory=list)

    @classmethod
    def from_chart(cls, chart: Chart) -> "ChartDescriptor":
        return cls(
            table_id=chart.table_id,
            info=chart.info,
            antigens=[(antigen.name, antigen.variant_id) for antigen in chart.antigens],
            sera=[(serum.name, serum.variant_id) for serum in chart.sera],
            titers=[list(row) for row in chart.titers],
        )

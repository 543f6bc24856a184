"""Configuration contracts for hidb catalogs and matching."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping


class VirusType(str, Enum):
    """Virus-type partitions that have a catalog of their own."""

    A_H1N1 = "A(H1N1)"
    A_H3N2 = "A(H3N2)"
    B = "B"

    @classmethod
    def parse(cls, value: "str | VirusType") -> "VirusType":
        """Return the enum member for a value such as ``"A(H3N2)"`` or ``"h3"``."""

        if isinstance(value, cls):
            return value

        text = str(value).strip().upper()
        aliases = {"H1": cls.A_H1N1, "H3": cls.A_H3N2, "A_H1N1": cls.A_H1N1, "A_H3N2": cls.A_H3N2}
        if text in aliases:
            return aliases[text]
        return cls(text)


@dataclass(frozen=True)
class SubstitutionFamily:
    """Passage/reassortant keyword with the spellings it may take in a record.

    ``synonyms`` keep their leading separator; a synonym is looked up in the
    qualifier part of a full name without it. ``negatives`` are markers that
    rule a record out for this keyword.
    """

    keyword: str
    synonyms: tuple[str, ...]
    negatives: tuple[str, ...] = ()


EGG_FAMILY = SubstitutionFamily(
    keyword=" EGG",
    synonyms=(" E",),
    negatives=("NYMC", "IVR", "NIB", "RESVIR", "RG", "VI", "REASSORTANT"),
)

CELL_FAMILY = SubstitutionFamily(
    keyword=" CELL",
    synonyms=(" MDCK", " SIAT"),
)

REASSORTANT_FAMILY = SubstitutionFamily(
    keyword=" REASSORTANT",
    synonyms=(" NYMC", " IVR", " NIB", " RESVIR", " RG", " VI", " REASSORTANT"),
)

DEFAULT_FAMILIES: tuple[SubstitutionFamily, ...] = (
    EGG_FAMILY,
    CELL_FAMILY,
    REASSORTANT_FAMILY,
)


@dataclass(frozen=True)
class MatchSettings:
    """Tunables for indexing and scoring."""

    index_key_size: int = 4
    threshold_factor: float = 0.05
    families: tuple[SubstitutionFamily, ...] = DEFAULT_FAMILIES

    def default_threshold(self, query: str) -> int:
        """Name-score threshold used when no better score has been seen yet."""

        return int(len(query) * len(query) * self.threshold_factor)


DEFAULT_SETTINGS = MatchSettings()


DEFAULT_CATALOG_FILENAMES: Mapping[VirusType, str] = {
    VirusType.A_H1N1: "hidb4.h1.json.xz",
    VirusType.A_H3N2: "hidb4.h3.json.xz",
    VirusType.B: "hidb4.b.json.xz",
}


@dataclass(frozen=True)
class CatalogFileLayout:
    """Where per-virus-type snapshots and the location db live on disk."""

    directory: Path
    filenames: Mapping[VirusType, str] = field(default_factory=lambda: dict(DEFAULT_CATALOG_FILENAMES))
    locations_filename: str = "locationdb.json.xz"

    def catalog_path(self, virus_type: VirusType) -> Path | None:
        """Return the snapshot path for a virus type, or ``None`` if unmapped."""

        filename = self.filenames.get(virus_type)
        if filename is None:
            return None
        return Path(self.directory) / filename

    def locations_path(self) -> Path:
        return Path(self.directory) / self.locations_filename

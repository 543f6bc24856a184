"""Merged antigen/serum catalog with fuzzy name lookup.

Charts are merged into a deduplicated catalog, a location-keyed index is
built over it, and free-text virus names are resolved against the index with
a two-stage fuzzy score.
"""

from .cache import HiDbSet
from .catalog import Catalog, MergeReport
from .config import (
    CatalogFileLayout,
    MatchSettings,
    SubstitutionFamily,
    VirusType,
)
from .database import HiDb
from .errors import (
    DuplicateTable,
    HiDbError,
    IndexNotCurrent,
    InvalidPayload,
    LocationNotFound,
    NotFound,
    ParseFailure,
    UnsupportedCatalog,
)
from .index import AntigenRefs, NameIndex
from .locations import Location, LocationDb, LocationService
from .matching import ScoredMatch, match, rank, score_record
from .models import (
    Antigen,
    CanonicalAntigen,
    CanonicalSerum,
    Chart,
    ChartDescriptor,
    ChartInfo,
    PerTableEntry,
    Serum,
)
from .names import NameParts, decompose, split
from .registry import AdapterPluginSpec, ChartFormatRegistry, build_default_chart_formats

__all__ = [
    "AdapterPluginSpec",
    "Antigen",
    "AntigenRefs",
    "CanonicalAntigen",
    "CanonicalSerum",
    "Catalog",
    "CatalogFileLayout",
    "Chart",
    "ChartDescriptor",
    "ChartFormatRegistry",
    "ChartInfo",
    "DuplicateTable",
    "HiDb",
    "HiDbError",
    "HiDbSet",
    "IndexNotCurrent",
    "InvalidPayload",
    "Location",
    "LocationDb",
    "LocationNotFound",
    "LocationService",
    "MatchSettings",
    "MergeReport",
    "NameIndex",
    "NameParts",
    "NotFound",
    "ParseFailure",
    "PerTableEntry",
    "ScoredMatch",
    "Serum",
    "SubstitutionFamily",
    "UnsupportedCatalog",
    "VirusType",
    "build_default_chart_formats",
    "decompose",
    "match",
    "rank",
    "score_record",
    "split",
]

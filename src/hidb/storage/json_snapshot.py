"""JSON (optionally xz-compressed) snapshot backend for catalogs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from hidb.config import DEFAULT_SETTINGS, MatchSettings
from hidb.database import HiDb
from hidb.locations import LocationService
from hidb.models import (
    Antigen,
    CanonicalAntigen,
    CanonicalSerum,
    ChartDescriptor,
    ChartInfo,
    PerTableEntry,
    Serum,
)
from hidb.payloads import read_json, validate, write_json
from hidb.storage.base import CatalogStorage

logger = logging.getLogger("hidb.storage")

SNAPSHOT_VERSION = "hidb-v1"


class JsonSnapshotStorage(CatalogStorage):
    """Store the catalog as one JSON document, compressed if the path ends in ``.xz``."""

    def __init__(
        self,
        *,
        path: str | Path,
        pretty: bool = False,
        settings: MatchSettings = DEFAULT_SETTINGS,
    ) -> None:
        self.path = Path(path)
        self.pretty = pretty
        self.settings = settings

    def persist(self, hidb: HiDb) -> None:
        catalog = hidb.catalog
        payload = {
            "version": SNAPSHOT_VERSION,
            "charts": [_chart_to_dict(chart) for chart in catalog.charts()],
            "antigens": [
                {"data": antigen.data.to_dict(), "tables": _tables_to_list(antigen.tables)}
                for antigen in catalog.antigens()
            ],
            "sera": [
                {
                    "data": serum.data.to_dict(),
                    "tables": _tables_to_list(serum.tables),
                    "homologous": dict(serum.homologous),
                }
                for serum in catalog.sera()
            ],
        }
        write_json(self.path, payload, indent=1 if self.pretty else None)
        logger.info(
            "Wrote %d charts, %d antigens, %d sera to %s",
            len(payload["charts"]),
            len(payload["antigens"]),
            len(payload["sera"]),
            self.path,
        )

    def restore(self, locations: LocationService) -> HiDb:
        payload = read_json(self.path)
        validate(payload, "snapshot", source=self.path)

        hidb = HiDb(locations, settings=self.settings)
        hidb.catalog.restore(
            antigens=(
                CanonicalAntigen(
                    data=Antigen.from_dict(item["data"]),
                    tables=_tables_from_list(item["tables"]),
                )
                for item in payload["antigens"]
            ),
            sera=(
                CanonicalSerum(
                    data=Serum.from_dict(item["data"]),
                    tables=_tables_from_list(item["tables"]),
                    homologous=dict(item.get("homologous", {})),
                )
                for item in payload["sera"]
            ),
            charts=(_chart_from_dict(item) for item in payload["charts"]),
        )
        hidb.rebuild_index()
        logger.info(
            "Restored %d antigens and %d sera from %s",
            hidb.catalog.number_of_antigens(),
            hidb.catalog.number_of_sera(),
            self.path,
        )
        return hidb


def _tables_to_list(tables: list[PerTableEntry]) -> list[dict[str, str]]:
    result = []
    for entry in tables:
        item = {"table_id": entry.table_id}
        if entry.date:
            item["date"] = entry.date
        result.append(item)
    return result


def _tables_from_list(items: list[dict[str, str]]) -> list[PerTableEntry]:
    return [PerTableEntry(table_id=item["table_id"], date=item.get("date", "")) for item in items]


def _chart_to_dict(chart: ChartDescriptor) -> dict[str, Any]:
    return {
        "table_id": chart.table_id,
        "info": chart.info.to_dict(),
        "antigens": [list(pair) for pair in chart.antigens],
        "sera": [list(pair) for pair in chart.sera],
        "titers": chart.titers,
    }


def _chart_from_dict(payload: dict[str, Any]) -> ChartDescriptor:
    return ChartDescriptor(
        table_id=payload["table_id"],
        info=ChartInfo.from_dict(payload["info"]),
        antigens=[(name, variant_id) for name, variant_id in payload.get("antigens", [])],
        sera=[(name, variant_id) for name, variant_id in payload.get("sera", [])],
        titers=[list(row) for row in payload.get("titers", [])],
    )

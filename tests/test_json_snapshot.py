import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from hidb import (  # noqa: E402
    Antigen,
    Chart,
    ChartInfo,
    HiDb,
    InvalidPayload,
    Location,
    LocationDb,
    Serum,
)
from hidb.storage import JsonSnapshotStorage  # noqa: E402

PERTH = "A(H3N2)/PERTH/16/2009"


def _locations() -> LocationDb:
    return LocationDb([Location(name="PERTH", country="AUSTRALIA", continent="AUSTRALIA-OCEANIA")])


def _hidb() -> HiDb:
    hidb = HiDb(_locations())
    hidb.merge_all(
        [
            Chart(
                table_id="A(H3N2):HI:CDC:20090612",
                info=ChartInfo(virus_type="A(H3N2)", lab="CDC", date="20090612"),
                antigens=[
                    Antigen(name=PERTH, passage="E3", date="2009-06-01", clades=["3C"]),
                    Antigen(name=PERTH, passage="MDCK1"),
                ],
                sera=[Serum(name=PERTH, serum_id="F01/09", serum_species="FERRET", homologous=0)],
                titers=[["1280"], ["640"]],
            ),
            Chart(
                table_id="A(H3N2):HI:CDC:20090710",
                info=ChartInfo(virus_type="A(H3N2)", lab="CDC", date="20090710"),
                antigens=[Antigen(name=PERTH, passage="E3")],
            ),
        ]
    )
    return hidb


def test_snapshot_round_trip_preserves_catalog(tmp_path: Path) -> None:
    path = tmp_path / "hidb4.h3.json.xz"
    saved = _hidb()

    JsonSnapshotStorage(path=path).persist(saved)
    restored = JsonSnapshotStorage(path=path).restore(_locations())

    assert restored.catalog.is_sorted()
    assert restored.index.is_current(restored.catalog)
    assert [ag.full_name for ag in restored.catalog.antigens()] == [
        ag.full_name for ag in saved.catalog.antigens()
    ]

    egg = restored.find_antigens_exact(f"{PERTH} E3")
    assert [entry.table_id for entry in egg.tables] == [
        "A(H3N2):HI:CDC:20090612",
        "A(H3N2):HI:CDC:20090710",
    ]
    assert egg.date() == "2009-06-01"
    assert egg.data.clades == ["3C"]

    serum = restored.find_sera_exact(f"{PERTH} F01/09")
    assert serum.data.serum_species == "FERRET"
    assert serum.homologous_for("A(H3N2):HI:CDC:20090612") == "E3"

    chart = restored.catalog.chart("A(H3N2):HI:CDC:20090612")
    assert chart.info == ChartInfo(virus_type="A(H3N2)", lab="CDC", date="20090612")
    assert chart.antigens == [(PERTH, "E3"), (PERTH, "MDCK1")]
    assert chart.titers == [["1280"], ["640"]]


def test_restored_catalog_accepts_new_charts(tmp_path: Path) -> None:
    path = tmp_path / "hidb.json"
    JsonSnapshotStorage(path=path, pretty=True).persist(_hidb())
    restored = JsonSnapshotStorage(path=path).restore(_locations())

    restored.merge(
        Chart(
            table_id="A(H3N2):HI:CDC:20090801",
            info=ChartInfo(virus_type="A(H3N2)", lab="CDC", date="20090801"),
            antigens=[Antigen(name="A(H3N2)/PERTH/1/2009")],
        )
    )
    restored.rebuild_index()

    assert restored.catalog.is_sorted()
    assert restored.catalog.number_of_antigens() == 3
    assert len(restored.find_antigens("A(H3N2)/PERTH/1/2009")) == 1


def test_snapshot_with_unknown_version_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "hidb.json"
    path.write_text(json.dumps({"version": "hidb-v0", "charts": [], "antigens": [], "sera": []}))

    with pytest.raises(InvalidPayload):
        JsonSnapshotStorage(path=path).restore(_locations())

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from hidb import Antigen, Catalog, Chart, ChartInfo, DuplicateTable, Serum  # noqa: E402

PERTH = "A(H3N2)/PERTH/16/2009"
BRISBANE = "A(H3N2)/BRISBANE/10/2007"


def _chart(table_id: str, antigens, sera=(), *, lab: str = "CDC") -> Chart:
    return Chart(
        table_id=table_id,
        info=ChartInfo(virus_type="A(H3N2)", lab=lab, date=table_id[-8:]),
        antigens=list(antigens),
        sera=list(sera),
    )


def _keys(records):
    return [record.key() for record in records]


def test_merge_keeps_antigens_and_sera_sorted() -> None:
    catalog = Catalog()
    catalog.merge(
        _chart(
            "CDC:20090612",
            [Antigen(name=PERTH, passage="MDCK1"), Antigen(name=BRISBANE, passage="E2")],
            [Serum(name=PERTH, serum_id="F01/09"), Serum(name=BRISBANE, serum_id="F22/07")],
        )
    )
    catalog.merge(
        _chart(
            "CDC:20090710",
            [Antigen(name=PERTH, passage="E3"), Antigen(name="A(H3N2)/ALABAMA/1/2009")],
        )
    )

    antigen_keys = _keys(catalog.antigens())
    serum_keys = _keys(catalog.sera())
    assert antigen_keys == sorted(set(antigen_keys))
    assert serum_keys == sorted(set(serum_keys))
    assert catalog.is_sorted()

    for name, variant_id in antigen_keys:
        index = catalog.find_antigen_key(name, variant_id)
        assert index is not None
        assert catalog.antigen(index).key() == (name, variant_id)


def test_records_shared_by_tables_are_merged() -> None:
    catalog = Catalog()
    catalog.merge(_chart("CDC:20090612", [Antigen(name=PERTH, passage="E3", date="2009-06-01")]))
    report = catalog.merge(
        _chart("NIMR:20090710", [Antigen(name=PERTH, passage="E3", lab_ids=["NIMR#1"])], lab="NIMR")
    )

    assert report.new_antigens == 0
    assert report.updated_antigens == 1
    assert catalog.number_of_antigens() == 1

    antigen = next(catalog.antigens())
    assert antigen.number_of_tables() == 2
    assert antigen.most_recent_table().table_id == "NIMR:20090710"
    assert antigen.earliest_table().table_id == "CDC:20090612"
    assert antigen.date() == "2009-06-01"
    assert antigen.has_lab_id("NIMR#1")


def test_duplicate_table_is_rejected_without_changes() -> None:
    catalog = Catalog()
    chart = _chart("CDC:20090612", [Antigen(name=PERTH, passage="E3")], [Serum(name=PERTH, serum_id="F01/09")])
    catalog.merge(chart)
    generation = catalog.generation

    with pytest.raises(DuplicateTable):
        catalog.merge(chart)

    assert catalog.generation == generation
    assert catalog.number_of_antigens() == 1
    assert catalog.number_of_sera() == 1
    assert next(catalog.antigens()).number_of_tables() == 1
    assert len(catalog.charts()) == 1


def test_distinct_records_are_not_merged() -> None:
    catalog = Catalog()
    report = catalog.merge(
        _chart(
            "CDC:20090612",
            [Antigen(name=PERTH, passage="E3"), Antigen(name=PERTH, passage="E3", distinct=True)],
            [Serum(name=PERTH, serum_id="F01/09", distinct=True)],
        )
    )

    assert report.skipped == 2
    assert catalog.number_of_antigens() == 1
    assert catalog.number_of_sera() == 0
    assert [chart.antigens for chart in catalog.charts()] == [[(PERTH, "E3"), (PERTH, "E3")]]


def test_homologous_antigen_is_resolved_per_table() -> None:
    catalog = Catalog()
    antigens = [Antigen(name=PERTH, passage="E3"), Antigen(name=PERTH, passage="MDCK1")]
    catalog.merge(_chart("CDC:20090612", antigens, [Serum(name=PERTH, serum_id="F01/09", homologous=1)]))
    catalog.merge(_chart("CDC:20090710", antigens, [Serum(name=PERTH, serum_id="F01/09", homologous=0)]))

    serum = next(catalog.sera())
    assert serum.homologous_for("CDC:20090612") == "MDCK1"
    assert serum.homologous_for("CDC:20090710") == "E3"
    assert serum.data.homologous is None


def test_out_of_range_homologous_index_is_ignored() -> None:
    catalog = Catalog()
    report = catalog.merge(
        _chart("CDC:20090612", [Antigen(name=PERTH)], [Serum(name=PERTH, serum_id="F01/09", homologous=5)])
    )

    assert report.homologous_links == 0
    assert next(catalog.sera()).homologous == {}


def test_charts_are_kept_sorted_by_table_id() -> None:
    catalog = Catalog()
    catalog.merge(_chart("CDC:20100101", [Antigen(name=PERTH)]))
    catalog.merge(_chart("CDC:20090101", [Antigen(name=BRISBANE)]))

    assert [chart.table_id for chart in catalog.charts()] == ["CDC:20090101", "CDC:20100101"]
    assert catalog.chart("CDC:20100101").antigens == [(PERTH, "")]
    assert catalog.has_chart("CDC:20090101")
    with pytest.raises(KeyError):
        catalog.chart("CDC:19990101")


def test_arena_indices_survive_later_inserts() -> None:
    catalog = Catalog()
    catalog.merge(_chart("CDC:20090612", [Antigen(name=PERTH)]))
    index = catalog.find_antigen_key(PERTH, "")

    catalog.merge(_chart("CDC:20090710", [Antigen(name=BRISBANE), Antigen(name="A(H3N2)/ALABAMA/1/2009")]))

    assert catalog.antigen(index).name == PERTH
    assert catalog.find_antigen_key(PERTH, "") == index


def test_repeated_record_in_one_chart_adds_the_table_once() -> None:
    catalog = Catalog()
    report = catalog.merge(
        _chart(
            "CDC:20090612",
            [Antigen(name=PERTH, passage="E3"), Antigen(name=PERTH, passage="E3", lab_ids=["CDC#1"])],
            [Serum(name=PERTH, serum_id="F01/09"), Serum(name=PERTH, serum_id="F01/09")],
        )
    )

    assert report.new_antigens == 1
    assert report.updated_antigens == 1
    assert report.new_sera == 1
    assert report.updated_sera == 1

    antigen = next(catalog.antigens())
    serum = next(catalog.sera())
    assert antigen.number_of_tables() == 1
    assert serum.number_of_tables() == 1
    assert antigen.has_lab_id("CDC#1")
    assert catalog.chart("CDC:20090612").antigens == [(PERTH, "E3"), (PERTH, "E3")]

import json
import lzma
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from hidb import InvalidPayload  # noqa: E402
from hidb.adapters import JsonChartAdapter  # noqa: E402
from hidb.adapters.common import chart_stem, collect_chart_files, table_id_sidecar  # noqa: E402


def _chart_payload(lab: str, date: str, virus_type: str = "A(H3N2)") -> dict:
    return {
        "info": {"virus_type": virus_type, "lab": lab, "date": date},
        "antigens": [
            {"name": "A(H3N2)/PERTH/16/2009", "passage": "E3", "lab_ids": ["CDC#2009712345"]},
            {"name": "A(H3N2)/BRISBANE/10/2007", "reassortant": "NYMC X-175C"},
        ],
        "sera": [{"name": "A(H3N2)/PERTH/16/2009", "serum_id": "F01/09", "homologous": 0}],
        "titers": [["1280"], ["<10"]],
    }


def test_adapter_reads_plain_and_compressed_charts(tmp_path: Path) -> None:
    (tmp_path / "cdc.json").write_text(json.dumps(_chart_payload("cdc", "20090612")))
    with lzma.open(tmp_path / "nimr.json.xz", "wt", encoding="utf-8") as fh:
        json.dump(_chart_payload("NIMR", "20090710"), fh)
    (tmp_path / "notes.txt").write_text("ignored")

    charts = list(JsonChartAdapter(input_paths=tmp_path).read())

    assert [chart.table_id for chart in charts] == [
        "A(H3N2):HI:CDC:20090612",
        "A(H3N2):HI:NIMR:20090710",
    ]
    chart = charts[0]
    assert chart.info.lab == "CDC"
    assert chart.antigens[0].full_name == "A(H3N2)/PERTH/16/2009 E3"
    assert chart.antigens[1].variant_id == "NYMC X-175C"
    assert chart.sera[0].homologous == 0
    assert chart.titers == [["1280"], ["<10"]]


def test_adapter_keeps_explicit_table_id(tmp_path: Path) -> None:
    payload = _chart_payload("CDC", "20090612")
    payload["table_id"] = "cdc-2009-06-12-a"
    path = tmp_path / "chart.json"
    path.write_text(json.dumps(payload))

    (chart,) = JsonChartAdapter(input_paths=path).read()

    assert chart.table_id == "cdc-2009-06-12-a"


def test_adapter_filters_by_virus_type(tmp_path: Path) -> None:
    (tmp_path / "h3.json").write_text(json.dumps(_chart_payload("CDC", "20090612")))
    (tmp_path / "b.json").write_text(json.dumps(_chart_payload("CDC", "20090612", virus_type="B")))

    charts = list(JsonChartAdapter(input_paths=tmp_path, virus_type="B").read())

    assert [chart.info.virus_type for chart in charts] == ["B"]


def test_adapter_rejects_invalid_chart(tmp_path: Path) -> None:
    payload = _chart_payload("CDC", "20090612")
    payload["antigens"][0]["name"] = ""
    del payload["sera"]
    path = tmp_path / "broken.json"
    path.write_text(json.dumps(payload))

    with pytest.raises(InvalidPayload) as excinfo:
        list(JsonChartAdapter(input_paths=path).read())

    assert "sera" in str(excinfo.value)
    assert "/antigens/0/name" in str(excinfo.value)


def test_table_id_sidecar_names_the_chart(tmp_path: Path) -> None:
    path = tmp_path / "cdc-0612.json.xz"
    with lzma.open(path, "wt", encoding="utf-8") as fh:
        json.dump(_chart_payload("CDC", "20090612"), fh)
    table_id_sidecar(path, JsonChartAdapter.suffixes).write_text("cdc-2009-06-12-b\n")

    (chart,) = JsonChartAdapter(input_paths=path).read()

    assert (tmp_path / "cdc-0612.table_id").exists()
    assert chart.table_id == "cdc-2009-06-12-b"


def test_table_id_in_document_wins_over_sidecar(tmp_path: Path) -> None:
    payload = _chart_payload("CDC", "20090612")
    payload["table_id"] = "from-document"
    path = tmp_path / "chart.json"
    path.write_text(json.dumps(payload))
    (tmp_path / "chart.table_id").write_text("from-sidecar")

    (chart,) = JsonChartAdapter(input_paths=path).read()

    assert chart.table_id == "from-document"


def test_chart_stem_strips_longest_suffix() -> None:
    suffixes = (".json", ".json.xz")

    assert chart_stem("charts/cdc.json.xz", suffixes) == "cdc"
    assert chart_stem("charts/cdc.JSON", suffixes) == "cdc"
    assert chart_stem("charts/cdc.txt", suffixes) == "cdc.txt"


def test_collect_chart_files_expands_variables_and_deduplicates(monkeypatch, tmp_path: Path) -> None:
    data_dir = tmp_path / "inputs"
    data_dir.mkdir(parents=True)
    first = data_dir / "a.json"
    second = data_dir / "b.json.xz"
    first.write_text("{}")
    second.write_text("")
    (data_dir / "a.table_id").write_text("x")

    monkeypatch.setenv("HIDB_PATH_TEST", str(data_dir))

    found = collect_chart_files(
        ["$HIDB_PATH_TEST/*.json", data_dir, first],
        JsonChartAdapter.suffixes,
    )

    assert found == [first, second]


def test_collect_chart_files_keeps_explicit_files(tmp_path: Path) -> None:
    path = tmp_path / "chart.txt"
    path.write_text("{}")

    assert collect_chart_files(path, JsonChartAdapter.suffixes) == [path]
    assert collect_chart_files(tmp_path, JsonChartAdapter.suffixes) == []

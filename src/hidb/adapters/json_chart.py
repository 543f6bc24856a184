"""Adapter that reads charts stored as JSON documents."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from hidb.adapters.base import ChartAdapter
from hidb.adapters.common import read_table_id_sidecar
from hidb.models import Antigen, Chart, ChartInfo, Serum
from hidb.payloads import read_json, validate

logger = logging.getLogger("hidb.adapters.json_chart")


class JsonChartAdapter(ChartAdapter):
    """Read ``*.json``/``*.json.xz`` chart files.

    Expected format::

        {"table_id": "A(H3N2):HI:CDC:20090612",       # optional
         "info": {"virus_type": "A(H3N2)", "lab": "CDC", "date": "20090612"},
         "antigens": [{"name": "A(H3N2)/PERTH/16/2009", "passage": "E3"}],
         "sera": [{"name": "A(H3N2)/PERTH/16/2009", "serum_id": "F01/09",
                   "homologous": 0}],
         "titers": [["1280"]]}

    The table id is taken from the document, else from a ``<stem>.table_id``
    file beside the chart, else built from ``info``.
    """

    name = "json_chart"
    suffixes = (".json", ".json.xz")

    def read(self) -> Iterable[Chart]:
        for path in self.input_paths:
            payload = read_json(path)
            validate(payload, "chart", source=path)
            chart = self.parse(payload, table_id=read_table_id_sidecar(path, self.suffixes))

            if not self.wanted(chart):
                logger.debug("Skipping %s: virus type %s", path, chart.info.virus_type)
                continue
            yield chart

    @staticmethod
    def parse(payload: dict[str, Any], table_id: str | None = None) -> Chart:
        info = ChartInfo.from_dict(payload["info"])
        return Chart(
            table_id=str(payload.get("table_id") or table_id or info.default_table_id()),
            info=info,
            antigens=[Antigen.from_dict(item) for item in payload["antigens"]],
            sera=[Serum.from_dict(item) for item in payload["sera"]],
            titers=[[str(value) for value in row] for row in payload.get("titers", [])],
        )

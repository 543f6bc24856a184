"""Base interface for chart import adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

from hidb.adapters.common import collect_chart_files
from hidb.models import Chart


class ChartAdapter(ABC):
    """Adapter that decodes one on-disk chart format into :class:`Chart` objects.

    ``name`` identifies the format and ``suffixes`` are the file name endings
    that belong to it; both are used by :class:`hidb.registry.ChartFormatRegistry`.
    """

    name: str
    suffixes: tuple[str, ...] = ()

    def __init__(
        self,
        *,
        input_paths: str | Path | Iterable[str | Path],
        virus_type: str | None = None,
    ) -> None:
        self.input_paths = collect_chart_files(input_paths, self.suffixes)
        self.virus_type = virus_type

    def wanted(self, chart: Chart) -> bool:
        return not self.virus_type or chart.info.virus_type == self.virus_type

    @abstractmethod
    def read(self) -> Iterable[Chart]:
        """Yield charts from the adapter's input files."""

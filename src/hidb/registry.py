"""Chart formats known to the importer, chosen per file by suffix."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from hidb.adapters import ChartAdapter, JsonChartAdapter
from hidb.adapters.common import chart_suffix, collect_chart_files
from hidb.models import Chart

logger = logging.getLogger("hidb.registry")


@dataclass(frozen=True)
class AdapterPluginSpec:
    """``MODULE:CLASS`` location of an extra chart adapter."""

    module: str
    class_name: str

    @classmethod
    def parse(cls, raw: str) -> "AdapterPluginSpec":
        module, _, class_name = raw.strip().partition(":")
        if not module or not class_name:
            raise ValueError(f"Plugin must look like MODULE:CLASS, got {raw!r}")
        return cls(module=module, class_name=class_name)


class ChartFormatRegistry:
    """Chart adapters keyed by format name and by the file suffixes they own.

    A suffix belongs to one format only. When several registered suffixes
    match a file the longest wins.
    """

    def __init__(self) -> None:
        self._adapters: dict[str, type[ChartAdapter]] = {}
        self._suffixes: dict[str, str] = {}

    def register(self, adapter_cls: type[ChartAdapter]) -> None:
        fmt = adapter_cls.name.strip().lower()
        if not fmt:
            raise ValueError("Chart format name cannot be empty")
        if fmt in self._adapters:
            raise ValueError(f"Chart format already registered: {fmt}")
        if not adapter_cls.suffixes:
            raise ValueError(f"Chart format {fmt} declares no file suffixes")
        for suffix in adapter_cls.suffixes:
            owner = self._suffixes.get(suffix.lower())
            if owner is not None:
                raise ValueError(f"Suffix {suffix} already belongs to {owner}")

        self._adapters[fmt] = adapter_cls
        for suffix in adapter_cls.suffixes:
            self._suffixes[suffix.lower()] = fmt

    def register_plugin(self, plugin: AdapterPluginSpec) -> type[ChartAdapter]:
        module = importlib.import_module(plugin.module)
        adapter_cls = getattr(module, plugin.class_name)
        if not (isinstance(adapter_cls, type) and issubclass(adapter_cls, ChartAdapter)):
            raise TypeError(f"{plugin.module}:{plugin.class_name} is not a ChartAdapter")
        self.register(adapter_cls)
        return adapter_cls

    def formats(self) -> list[str]:
        return sorted(self._adapters)

    def suffixes(self) -> list[str]:
        return sorted(self._suffixes)

    def format_for(self, path: str | Path) -> str | None:
        suffix = chart_suffix(path, list(self._suffixes))
        return self._suffixes[suffix] if suffix is not None else None

    def adapter_class(self, fmt: str) -> type[ChartAdapter]:
        key = fmt.strip().lower()
        if key not in self._adapters:
            raise KeyError(f"Unknown chart format '{fmt}'. Available: {', '.join(self.formats())}")
        return self._adapters[key]

    def read(
        self,
        inputs: str | Path | Iterable[str | Path],
        *,
        fmt: str | None = None,
        virus_type: str | None = None,
    ) -> Iterator[Chart]:
        """Yield the charts of every input file in input order.

        Each file is decoded by the format owning its suffix, or by ``fmt``
        for all files when given. A file no format claims raises ``ValueError``.
        """

        forced = self.adapter_class(fmt) if fmt is not None else None
        suffixes = forced.suffixes if forced is not None else self.suffixes()

        for path in collect_chart_files(inputs, suffixes):
            adapter_cls = forced
            if adapter_cls is None:
                owner = self.format_for(path)
                if owner is None:
                    raise ValueError(f"No chart format for {path}")
                adapter_cls = self._adapters[owner]
            logger.debug("Reading %s as %s", path, adapter_cls.name)
            yield from adapter_cls(input_paths=[path], virus_type=virus_type).read()


def build_default_chart_formats() -> ChartFormatRegistry:
    """Registry holding the built-in chart formats."""

    registry = ChartFormatRegistry()
    registry.register(JsonChartAdapter)
    return registry

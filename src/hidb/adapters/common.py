"""Locating chart files and the files that travel with them."""

from __future__ import annotations

import glob
import os
from collections.abc import Iterable, Sequence
from pathlib import Path

TABLE_ID_SUFFIX = ".table_id"


def chart_suffix(path: str | Path, suffixes: Sequence[str]) -> str | None:
    """Longest of ``suffixes`` that ``path`` ends with, ignoring case.

    ``chart.json.xz`` matches ``.json.xz`` rather than ``.xz`` or ``.json``.
    """

    name = Path(path).name.lower()
    matches = [suffix for suffix in suffixes if name.endswith(suffix.lower())]
    return max(matches, key=len) if matches else None


def chart_stem(path: str | Path, suffixes: Sequence[str]) -> str:
    """File name of ``path`` without its chart suffix."""

    name = Path(path).name
    suffix = chart_suffix(path, suffixes)
    return name[: -len(suffix)] if suffix else name


def table_id_sidecar(path: str | Path, suffixes: Sequence[str]) -> Path:
    """``<stem>.table_id`` next to the chart, which may override its table id."""

    path = Path(path)
    return path.with_name(chart_stem(path, suffixes) + TABLE_ID_SUFFIX)


def read_table_id_sidecar(path: str | Path, suffixes: Sequence[str]) -> str | None:
    sidecar = table_id_sidecar(path, suffixes)
    if not sidecar.is_file():
        return None
    return sidecar.read_text(encoding="utf-8").strip() or None


def collect_chart_files(
    inputs: str | Path | Iterable[str | Path],
    suffixes: Sequence[str],
) -> list[Path]:
    """Resolve files, directories and glob patterns into chart files.

    Directories and patterns contribute only names ending in one of
    ``suffixes``, in name order. Files named explicitly are kept whatever
    their suffix. ``~`` and environment variables are expanded and each file
    is listed once, at its first occurrence.
    """

    if isinstance(inputs, (str, Path)):
        inputs = [inputs]

    found: list[Path] = []
    seen: set[Path] = set()

    def add(path: Path) -> None:
        key = path.resolve()
        if key not in seen:
            seen.add(key)
            found.append(path)

    for item in inputs:
        text = os.path.expandvars(os.path.expanduser(str(item)))
        path = Path(text)
        if path.is_dir():
            candidates = sorted(path.iterdir())
        elif path.is_file():
            add(path)
            continue
        else:
            candidates = sorted(Path(match) for match in glob.glob(text))

        for candidate in candidates:
            if candidate.is_file() and chart_suffix(candidate, suffixes) is not None:
                add(candidate)

    return found

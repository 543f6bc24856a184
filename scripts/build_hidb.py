#!/usr/bin/env python3
"""Merge chart files into a hidb snapshot."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from hidb import (  # noqa: E402
    AdapterPluginSpec,
    DuplicateTable,
    HiDb,
    LocationDb,
    build_default_chart_formats,
)
from hidb.storage import JsonSnapshotStorage  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Merge charts into a hidb snapshot")
    parser.add_argument("inputs", nargs="+", help="Chart files, directories or globs")
    parser.add_argument("--output", required=True, help="Snapshot path (.json or .json.xz)")
    parser.add_argument("--locations", required=True, help="Location db path")
    parser.add_argument(
        "--format",
        default=None,
        help="Read every input with this chart format instead of choosing by file suffix",
    )
    parser.add_argument(
        "--plugin",
        action="append",
        default=[],
        metavar="MODULE:CLASS",
        help="Register an extra chart format",
    )
    parser.add_argument("--virus-type", default=None, help="Only merge charts of this virus type")
    parser.add_argument(
        "--update",
        action="store_true",
        help="Merge into an existing snapshot at --output instead of starting empty",
    )
    parser.add_argument(
        "--skip-duplicates",
        action="store_true",
        help="Skip charts whose table id is already merged instead of failing",
    )
    parser.add_argument("--pretty", action="store_true", help="Indent the snapshot JSON")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    logger = logging.getLogger("hidb.build")

    formats = build_default_chart_formats()
    for raw in args.plugin:
        formats.register_plugin(AdapterPluginSpec.parse(raw))

    locations = LocationDb.from_json(args.locations)
    storage = JsonSnapshotStorage(path=args.output, pretty=args.pretty)
    if args.update and Path(args.output).exists():
        hidb = storage.restore(locations)
    else:
        hidb = HiDb(locations)

    merged = 0
    skipped = 0
    for chart in formats.read(args.inputs, fmt=args.format, virus_type=args.virus_type):
        try:
            hidb.merge(chart)
        except DuplicateTable as exc:
            if not args.skip_duplicates:
                raise
            logger.warning("%s", exc)
            skipped += 1
            continue
        merged += 1

    hidb.rebuild_index()
    storage.persist(hidb)

    payload = {
        "charts_merged": merged,
        "charts_skipped": skipped,
        "antigens": hidb.catalog.number_of_antigens(),
        "sera": hidb.catalog.number_of_sera(),
        "unrecognized_locations": hidb.unrecognized_locations(),
    }
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

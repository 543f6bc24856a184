#!/usr/bin/env python3
"""Look up antigens and sera in a hidb snapshot."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from hidb import HiDb, LocationDb, NotFound  # noqa: E402
from hidb.storage import JsonSnapshotStorage  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query a hidb snapshot")
    parser.add_argument("--hidb", required=True, help="Snapshot path (.json or .json.xz)")
    parser.add_argument("--locations", required=True, help="Location db path")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )

    commands = parser.add_subparsers(dest="command", required=True)

    antigens = commands.add_parser("antigens", help="Find antigens by name")
    antigens.add_argument("name")
    antigens.add_argument("--exact", action="store_true")
    antigens.add_argument("--country", default=None)
    antigens.add_argument("--begin", default="", help="Earliest date, inclusive")
    antigens.add_argument("--end", default="", help="Latest date, exclusive")

    sera = commands.add_parser("sera", help="Find sera by name")
    sera.add_argument("name")
    sera.add_argument("--exact", action="store_true")

    commands.add_parser("list-antigens", help="List distinct antigen names")
    commands.add_parser("list-sera", help="List distinct serum names")
    commands.add_parser("countries", help="List countries of antigen locations")
    commands.add_parser("unrecognized", help="List locations missing from the location db")

    stat = commands.add_parser("stat", help="Antigen counts by lab, month and continent")
    stat.add_argument("--csv", default=None, help="Also write the counts as CSV")
    return parser.parse_args(argv)


def _antigen_row(antigen: Any) -> dict[str, Any]:
    return {
        "full_name": antigen.full_name,
        "date": antigen.date(),
        "tables": [entry.table_id for entry in antigen.tables],
        "lab_ids": list(antigen.data.lab_ids),
    }


def _serum_row(serum: Any) -> dict[str, Any]:
    return {
        "full_name": serum.full_name,
        "species": serum.data.serum_species,
        "tables": [entry.table_id for entry in serum.tables],
        "homologous": dict(serum.homologous),
    }


def run(hidb: HiDb, args: argparse.Namespace) -> Any:
    if args.command == "antigens":
        if args.exact:
            return [_antigen_row(hidb.find_antigens_exact(args.name))]
        refs = hidb.find_antigen_refs(args.name)
        if args.country:
            refs = refs.filter_by_country(args.country)
        refs = refs.filter_by_date_range(args.begin, args.end)
        return [_antigen_row(antigen) for antigen in refs]

    if args.command == "sera":
        if args.exact:
            return [_serum_row(hidb.find_sera_exact(args.name))]
        return [_serum_row(serum) for serum in hidb.find_sera(args.name)]

    if args.command == "list-antigens":
        return hidb.list_antigen_names()
    if args.command == "list-sera":
        return hidb.list_serum_names()
    if args.command == "countries":
        return hidb.all_countries()
    if args.command == "unrecognized":
        return hidb.unrecognized_locations()

    if args.command == "stat":
        if args.csv:
            hidb.stat_frame().to_csv(args.csv, index=False)
        return hidb.stat()

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    locations = LocationDb.from_json(args.locations)
    hidb = JsonSnapshotStorage(path=args.hidb).restore(locations)

    try:
        result = run(hidb, args)
    except NotFound as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

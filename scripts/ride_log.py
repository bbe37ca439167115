#!/usr/bin/env python3
"""Inspect and edit an evtuner data directory from the command line.

Usage
-----
    python scripts/ride_log.py add --soc 12 --distance 8.5 --busbar 40 --phase 110 --tag 单人通勤
    python scripts/ride_log.py list
    python scripts/ride_log.py summary
    python scripts/ride_log.py export --output backup.json
    python scripts/ride_log.py import backup.json
    python scripts/ride_log.py settings --set voltage=72 --set electricityPrice=0.55
    python scripts/ride_log.py tag-add 下雨

The data directory defaults to ``EVTUNER_DATA_DIR`` (or ``~/.evtuner``).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from evtuner import EvTunerConfig, RideStore, format_date_time_long  # noqa: E402


def _parse_assignment(text: str) -> tuple[str, Any]:
    key, sep, raw = text.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {text!r}")
    try:
        value: Any = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return key.strip(), value


def _cmd_add(store: RideStore, args: argparse.Namespace) -> int:
    busbar = args.busbar if args.busbar is not None else store.last_input.busbar_current
    phase = args.phase if args.phase is not None else store.last_input.phase_current
    record: dict[str, Any] = {
        "socConsumed": args.soc,
        "distance": args.distance,
        "busbarCurrent": busbar,
        "phaseCurrent": phase,
        "timestamp": datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }
    if args.tag:
        record["tag"] = args.tag
    if args.notes:
        record["notes"] = args.notes

    reminder = store.add_record(record)
    enriched = store.enriched_records()[0]
    print(
        f"Added ride {enriched['id']}: {enriched['energyConsumption']} Wh/km, "
        f"range {enriched['range']:.0f} km, cost {enriched['electricityCost']:.2f}"
    )
    if reminder.should_remind:
        print(f"{reminder.new_records_count} rides since the last backup - consider running 'export'.")
    return 0


def _format_when(value: Any) -> str:
    if not value:
        return "-"
    try:
        return format_date_time_long(value)
    except (ValueError, OverflowError, OSError):
        return "-"


def _cmd_list(store: RideStore, args: argparse.Namespace) -> int:
    rows = list(zip(store.records, store.enriched_records()))
    if args.limit:
        rows = rows[: args.limit]
    if not rows:
        print("No rides recorded.")
        return 0
    for record, row in rows:
        when = _format_when(row.get("timestamp"))
        tier = store.consumption_tier_for(row["energyConsumption"])
        print(
            f"{record.id:>14}  {when:16}  {record.distance:>6.1f} km  "
            f"{row['energyConsumption']:>6.1f} Wh/km  {tier.value:9}  {record.tag or ''}"
        )
    return 0


def _cmd_summary(store: RideStore, args: argparse.Namespace) -> int:
    summary = store.ride_summary()
    print(json.dumps(summary.model_dump(by_alias=True), ensure_ascii=False, indent=2))
    print(f"Pending backup: {store.pending_backup_count} ride(s)")
    return 0


def _cmd_export(store: RideStore, args: argparse.Namespace) -> int:
    text = store.export_json()
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Exported {len(store.records)} rides to {args.output}")
    else:
        print(text)
    store.reset_backup_counter()
    return 0


def _cmd_import(store: RideStore, args: argparse.Namespace) -> int:
    text = Path(args.file).read_text(encoding="utf-8")
    if not store.import_snapshot(text):
        print("Invalid file.", file=sys.stderr)
        return 1
    print(f"Imported. {len(store.records)} rides in store.")
    return 0


def _cmd_settings(store: RideStore, args: argparse.Namespace) -> int:
    if args.set:
        store.update_settings(dict(args.set))
    print(json.dumps(store.settings.to_document(), ensure_ascii=False, indent=2))
    return 0


def _cmd_tag_add(store: RideStore, args: argparse.Namespace) -> int:
    if not store.add_custom_tag(args.tag):
        print(f"Tag {args.tag!r} already exists.")
    print(", ".join(store.all_tags))
    return 0


def _cmd_tag_remove(store: RideStore, args: argparse.Namespace) -> int:
    store.remove_custom_tag(args.tag)
    print(", ".join(store.all_tags))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Manage an evtuner ride log.")
    parser.add_argument("--data-dir", help="Data directory (default: EVTUNER_DATA_DIR or ~/.evtuner)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Record a ride")
    add.add_argument("--soc", type=float, required=True, help="SOC consumed (percent)")
    add.add_argument("--distance", type=float, required=True, help="Distance (km)")
    add.add_argument("--busbar", type=float, help="Busbar current (A), defaults to the last input")
    add.add_argument("--phase", type=float, help="Phase current (A), defaults to the last input")
    add.add_argument("--tag")
    add.add_argument("--notes")
    add.set_defaults(handler=_cmd_add)

    lst = sub.add_parser("list", help="List rides with derived metrics")
    lst.add_argument("--limit", type=int, default=0)
    lst.set_defaults(handler=_cmd_list)

    sub.add_parser("summary", help="Show aggregate statistics").set_defaults(handler=_cmd_summary)

    export = sub.add_parser("export", help="Write a backup document and reset the reminder")
    export.add_argument("--output", "-o", help="Write to FILE instead of stdout")
    export.set_defaults(handler=_cmd_export)

    imp = sub.add_parser("import", help="Restore settings and rides from a backup document")
    imp.add_argument("file")
    imp.set_defaults(handler=_cmd_import)

    settings = sub.add_parser("settings", help="Show or change settings")
    settings.add_argument("--set", action="append", type=_parse_assignment, metavar="KEY=VALUE")
    settings.set_defaults(handler=_cmd_settings)

    tag_add = sub.add_parser("tag-add", help="Add a custom tag")
    tag_add.add_argument("tag")
    tag_add.set_defaults(handler=_cmd_tag_add)

    tag_remove = sub.add_parser("tag-remove", help="Remove a custom tag")
    tag_remove.add_argument("tag")
    tag_remove.set_defaults(handler=_cmd_tag_remove)

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides = {"data_dir": args.data_dir} if args.data_dir else {}
    store = RideStore.from_config(EvTunerConfig.from_env(**overrides))
    store.load()
    return int(args.handler(store, args))


if __name__ == "__main__":
    sys.exit(main())

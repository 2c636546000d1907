from __future__ import annotations

import argparse
import json
import logging
from typing import List, Optional

from .actions import SimpleAction, WeightedAction
from .config import load_settings, setup_logging
from .hands import pretty, total_combinations
from .stats import combos_by_action, range_percentages
from .store import RangeStore, StoreError

logger = logging.getLogger(__name__)


def _print_listing(store: RangeStore) -> None:
    print('Folders:')
    for f in store.folders:
        print(f"  [{f.id}] {f.name}")
        for r in f.ranges:
            print(f"      [{r.id}] {r.name} ({len(r.hands)} hands)")
    print('Actions:')
    for a in store.actions:
        if isinstance(a, SimpleAction):
            print(f"  {a.id}: {a.name} {a.color}")
        elif isinstance(a, WeightedAction):
            print(f"  {a.id}: {a.name} {a.action1_id} {a.weight}% / {a.action2_id} {100 - a.weight}%")


def _print_range(store: RangeStore, range_id: str) -> None:
    r = store.range(range_id)
    print(f"Range {r.name}:")
    print(pretty(r.hands))
    combos = combos_by_action(r.hands)
    pct = range_percentages(r.hands, store.actions)
    print('\nCombos:')
    for action_id, n in sorted(combos.items()):
        print(f"  {action_id}: {n}")
    print(f"Share of {total_combinations()}:")
    for action_id, p in sorted(pct.items()):
        print(f"  {action_id}: {p}%")


def main(argv: Optional[List[str]] = None) -> int:
    settings = load_settings()
    parser = argparse.ArgumentParser(description='Poker range painter: inspect, export and import stored ranges')
    parser.add_argument('--db', default=settings.db_path, help='SQLite DB file path')
    parser.add_argument('--list', action='store_true', help='List folders, ranges and action buttons')
    parser.add_argument('--range', dest='range_id', default=None, help='Print the matrix and statistics of a range')
    parser.add_argument('--export', dest='export_path', default=None, help='Write the whole store as JSON')
    parser.add_argument('--import', dest='import_path', default=None, help='Read a JSON export into the store')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        store = RangeStore.load(args.db)
    except StoreError as e:
        logger.error("cannot load %s: %s", args.db, e)
        return 1

    if args.import_path:
        try:
            with open(args.import_path, 'r', encoding='utf-8') as f:
                store.import_json(json.load(f))
        except (OSError, json.JSONDecodeError, ValueError) as e:
            logger.error("import failed: %s", e)
            return 1
        store.save(args.db)
        print(f"Imported {args.import_path}")

    if args.export_path:
        with open(args.export_path, 'w', encoding='utf-8') as f:
            json.dump(store.to_json(), f, indent=2)
        print(f"Exported to {args.export_path}")

    if args.list:
        _print_listing(store)

    if args.range_id:
        try:
            _print_range(store, args.range_id)
        except StoreError as e:
            logger.error("%s", e)
            return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())

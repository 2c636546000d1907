#!/usr/bin/env python3
"""
Validate a range store DB and summarize what the matrix will show.

- Checks:
  * every hand key of every range is one of the 169 hand classes
  * action ids are unique and 'fold' is not stored as an action
  * weighted buttons reference fold or an existing simple button
  * weights are within 0..100
  * range cells point to an existing action (or fold)
- Prints a JSON summary with counts and samples

Usage:
  python tools/validate_store.py data/ranges.db
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from range_core.actions import DEFAULT_ACTIONS, FOLD_ID, WeightedAction, actions_from_json, dangling_references  # noqa: E402
from range_core.db import ACTIONS, FOLDERS, db_load_all  # noqa: E402
from range_core.hands import is_hand  # noqa: E402
from range_core.store import default_folders, folder_from_json  # noqa: E402

SAMPLE_LIMIT = 10


def validate(db_path: str) -> Dict[str, Any]:
    # read the raw documents; RangeStore.load would reject duplicate ids
    docs = db_load_all(db_path)
    folders = [folder_from_json(f) for f in docs[FOLDERS]] if FOLDERS in docs else default_folders()
    actions = actions_from_json(docs[ACTIONS]) if ACTIONS in docs else list(DEFAULT_ACTIONS)
    action_ids = [a.id for a in actions]
    known = set(action_ids) | {FOLD_ID}

    bad_hands: List[str] = []
    unknown_actions: List[str] = []
    hands_total = 0
    for folder in folders:
        for r in folder.ranges:
            for hand, action_id in r.hands.items():
                hands_total += 1
                if not is_hand(hand):
                    bad_hands.append(f"{r.id}:{hand}")
                if action_id not in known:
                    unknown_actions.append(f"{r.id}:{hand}={action_id}")

    duplicates = sorted({x for x in action_ids if action_ids.count(x) > 1})
    bad_weights = [a.id for a in actions if isinstance(a, WeightedAction) and not 0 <= a.weight <= 100]
    dangling = [f"{w}->{m}" for w, m in dangling_references(actions)]

    issues = len(bad_hands) + len(unknown_actions) + len(duplicates) + len(bad_weights) + len(dangling)
    return {
        "db": db_path,
        "ok": issues == 0,
        "folders": len(folders),
        "ranges": sum(len(f.ranges) for f in folders),
        "assignedHands": hands_total,
        "actions": len(actions),
        "issues": issues,
        "badHands": bad_hands[:SAMPLE_LIMIT],
        "unknownActions": unknown_actions[:SAMPLE_LIMIT],
        "duplicateActionIds": duplicates,
        "badWeights": bad_weights,
        "danglingReferences": dangling[:SAMPLE_LIMIT],
    }


def main(argv: List[str]) -> int:
    if len(argv) < 2:
        print(__doc__)
        return 2
    summary = validate(argv[1])
    print(json.dumps(summary, indent=2))
    return 0 if summary["ok"] else 1


if __name__ == '__main__':
    raise SystemExit(main(sys.argv))

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .actions import (
    DEFAULT_ACTIONS,
    ActionButton,
    WeightedAction,
    action_from_json,
    action_to_json,
    actions_from_json,
    dangling_references,
    find_action,
    validate_actions,
)
from .db import ACTIONS, FOLDERS, TRAININGS, TRAINING_STATISTICS, db_load_all, db_store_documents
from .hands import HandClass
from .selection import apply_mutation

logger = logging.getLogger(__name__)


class StoreError(ValueError):
    """Raised for lookups of folders/ranges that do not exist or malformed imports."""


@dataclass
class Range:
    id: str
    name: str
    hands: Dict[HandClass, str] = field(default_factory=dict)


@dataclass
class Folder:
    id: str
    name: str
    ranges: List[Range] = field(default_factory=list)


def default_folders() -> List[Folder]:
    return [Folder(id='1', name='Folder', ranges=[Range(id='1', name='Range')])]


def _next_id(existing: Sequence[str]) -> str:
    numeric = [int(x) for x in existing if x.isdigit()]
    return str(max(numeric, default=0) + 1)


class RangeStore:
    """Owner of folders, ranges, action buttons and training records.

    The matrix never keeps its own copy of this data: it reads a range's hand map
    and the action list per render and hands mutations back through
    `apply_mutation`.
    """

    def __init__(
        self,
        folders: Optional[List[Folder]] = None,
        actions: Optional[Sequence[ActionButton]] = None,
        trainings: Optional[List[Dict[str, Any]]] = None,
        training_statistics: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.folders: List[Folder] = folders if folders is not None else default_folders()
        self.actions: List[ActionButton] = list(actions if actions is not None else DEFAULT_ACTIONS)
        validate_actions(self.actions, check_references=False)
        self.trainings: List[Dict[str, Any]] = trainings or []
        self.training_statistics: List[Dict[str, Any]] = training_statistics or []

    # ---------- folders & ranges ----------

    def folder(self, folder_id: str) -> Folder:
        for f in self.folders:
            if f.id == folder_id:
                return f
        raise StoreError(f"unknown folder: {folder_id}")

    def find_range(self, range_id: str) -> Optional[Tuple[Folder, Range]]:
        for f in self.folders:
            for r in f.ranges:
                if r.id == range_id:
                    return f, r
        return None

    def range(self, range_id: str) -> Range:
        found = self.find_range(range_id)
        if found is None:
            raise StoreError(f"unknown range: {range_id}")
        return found[1]

    def add_folder(self, name: str) -> Folder:
        f = Folder(id=_next_id([x.id for x in self.folders]), name=name)
        self.folders.append(f)
        return f

    def rename_folder(self, folder_id: str, name: str) -> None:
        self.folder(folder_id).name = name

    def delete_folder(self, folder_id: str) -> None:
        f = self.folder(folder_id)
        self.folders.remove(f)

    def add_range(self, folder_id: str, name: str) -> Range:
        f = self.folder(folder_id)
        all_ids = [r.id for x in self.folders for r in x.ranges]
        r = Range(id=_next_id(all_ids), name=name)
        f.ranges.append(r)
        return r

    def rename_range(self, range_id: str, name: str) -> None:
        self.range(range_id).name = name

    def delete_range(self, range_id: str) -> None:
        found = self.find_range(range_id)
        if found is None:
            raise StoreError(f"unknown range: {range_id}")
        folder, r = found
        folder.ranges.remove(r)

    def apply_mutation(self, range_id: str, hand: HandClass, mode: str, active_action_id: str) -> Dict[HandClass, str]:
        r = self.range(range_id)
        r.hands = apply_mutation(r.hands, hand, mode, active_action_id)
        return r.hands

    # ---------- action buttons ----------

    def save_action(self, action: ActionButton) -> None:
        """Adds a button or replaces the one with the same id."""
        if find_action(action.id, self.actions) is not None:
            updated = [action if a.id == action.id else a for a in self.actions]
        else:
            updated = self.actions + [action]
        validate_actions(updated)
        self.actions = updated

    def delete_action(self, action_id: str) -> None:
        if find_action(action_id, self.actions) is None:
            raise StoreError(f"unknown action: {action_id}")
        users = [a.id for a in self.actions if isinstance(a, WeightedAction) and action_id in (a.action1_id, a.action2_id)]
        if users:
            raise StoreError(f"action {action_id} is used by weighted action(s): {', '.join(users)}")
        self.actions = [a for a in self.actions if a.id != action_id]
        # ranges keep the id; those cells render empty
        logger.info("deleted action %s", action_id)

    # ---------- trainings ----------

    def record_session(self, training_id: str, timestamp: int, duration: int, total: int, correct: int) -> Dict[str, Any]:
        stat = {
            "trainingId": training_id,
            "timestamp": int(timestamp),
            "duration": int(duration),
            "totalQuestions": int(total),
            "correctAnswers": int(correct),
        }
        self.training_statistics.append(stat)
        return stat

    def delete_training(self, training_id: str) -> None:
        self.trainings = [t for t in self.trainings if t.get("id") != training_id]
        self.training_statistics = [s for s in self.training_statistics if s.get("trainingId") != training_id]

    # ---------- JSON export / import ----------

    def to_json(self) -> Dict[str, Any]:
        return {
            "folders": [folder_to_json(f) for f in self.folders],
            "actionButtons": [action_to_json(a) for a in self.actions],
            "trainings": copy.deepcopy(self.trainings),
            "trainingStatistics": copy.deepcopy(self.training_statistics),
        }

    def import_json(self, data: Mapping[str, Any], lenient: bool = False) -> None:
        """Replaces every section present in an exported document; absent sections stay.

        The whole document is parsed before anything is assigned, so a bad document
        leaves the store untouched. With `lenient` (stored data), unusable action
        records are dropped with a warning instead of failing the load.
        """
        if not isinstance(data, Mapping):
            raise StoreError("import document must be an object")
        try:
            folders = [folder_from_json(f) for f in _as_list(data, "folders")] if "folders" in data else None
            if "actionButtons" in data:
                records = _as_list(data, "actionButtons")
                actions = _usable_actions(records) if lenient else actions_from_json(records)
            else:
                actions = None
            trainings = _as_list(data, "trainings") if "trainings" in data else None
            training_statistics = _as_list(data, "trainingStatistics") if "trainingStatistics" in data else None
            if actions is not None:
                validate_actions(actions, check_references=False)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StoreError(f"bad import document: {e}") from e

        if actions is not None:
            for weighted_id, missing in dangling_references(actions):
                logger.warning("action %s references missing action %s", weighted_id, missing)
            self.actions = actions
        if folders is not None:
            self.folders = folders
        if trainings is not None:
            self.trainings = trainings
        if training_statistics is not None:
            self.training_statistics = training_statistics

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> 'RangeStore':
        store = cls()
        store.import_json(data)
        return store

    # ---------- persistence ----------

    @classmethod
    def load(cls, db_path: str) -> 'RangeStore':
        docs = db_load_all(db_path)
        doc = {
            key: docs[src]
            for key, src in (
                ("folders", FOLDERS),
                ("actionButtons", ACTIONS),
                ("trainings", TRAININGS),
                ("trainingStatistics", TRAINING_STATISTICS),
            )
            if src in docs
        }
        store = cls()
        store.import_json(doc, lenient=True)
        logger.info("loaded store from %s (%d folders, %d actions)", db_path, len(store.folders), len(store.actions))
        return store

    def save(self, db_path: str) -> None:
        doc = self.to_json()
        db_store_documents(db_path, {
            FOLDERS: doc["folders"],
            ACTIONS: doc["actionButtons"],
            TRAININGS: doc["trainings"],
            TRAINING_STATISTICS: doc["trainingStatistics"],
        })


def folder_to_json(f: Folder) -> Dict[str, Any]:
    return {
        "id": f.id,
        "name": f.name,
        "ranges": [{"id": r.id, "name": r.name, "hands": dict(r.hands)} for r in f.ranges],
    }


def folder_from_json(obj: Mapping[str, Any]) -> Folder:
    if not isinstance(obj, Mapping):
        raise StoreError("folder must be an object")
    return Folder(
        id=str(obj["id"]),
        name=str(obj.get("name", "")),
        ranges=[_range_from_json(r) for r in obj.get("ranges", [])],
    )


def _range_from_json(obj: Mapping[str, Any]) -> Range:
    if not isinstance(obj, Mapping):
        raise StoreError("range must be an object")
    hands = obj.get("hands") or {}
    if not isinstance(hands, Mapping):
        raise StoreError(f"range {obj.get('id')}: hands must be an object")
    return Range(id=str(obj["id"]), name=str(obj.get("name", "")), hands={str(h): str(a) for h, a in hands.items()})


def _as_list(data: Mapping[str, Any], key: str) -> List[Any]:
    value = data[key]
    if not isinstance(value, list):
        raise StoreError(f"{key} must be a list")
    return list(value)


def _usable_actions(records: Sequence[Any]) -> List[ActionButton]:
    """Parses stored action records, skipping the ones the matrix cannot use."""
    out: List[ActionButton] = []
    seen = set()
    for record in records:
        try:
            action = action_from_json(record)
            validate_actions([action], check_references=False)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("dropping stored action %r: %s", record, e)
            continue
        if action.id in seen:
            logger.warning("dropping stored action with duplicate id %s", action.id)
            continue
        seen.add(action.id)
        out.append(action)
    return out

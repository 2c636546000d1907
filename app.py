from __future__ import annotations

import logging
from contextlib import ExitStack
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

from range_core.actions import ActionError, action_from_json, action_to_json, find_action
from range_core.config import load_settings
from range_core.hands import ALL_HANDS, HANDS, RANKS, combinations_of, total_combinations
from range_core.matrix import HandMatrix
from range_core.selection import DESELECT, SELECT, GridGeometry, ReleaseHub
from range_core.stats import blended_combos, combos_by_action, range_percentages, training_history, training_summary
from range_core.store import RangeStore, StoreError, folder_to_json

settings = load_settings()
DEFAULT_DB = settings.db_path

app = Flask(__name__)
logger = logging.getLogger("range-painter")

_lock = Lock()
_hub = ReleaseHub()  # window-level release events shared by every matrix
_store: Optional[RangeStore] = None
_db_path: Optional[str] = DEFAULT_DB
_matrices: Dict[str, Tuple[HandMatrix, ExitStack]] = {}


def configure_store(store: Optional[RangeStore], db_path: Optional[str] = None) -> None:
    """Replaces the process store; with db_path None nothing is written to disk."""
    global _store, _db_path
    with _lock:
        _unmount_all()
        _store = store
        _db_path = db_path


def _get_store() -> RangeStore:
    global _store
    if _store is None:
        _store = RangeStore.load(_db_path) if _db_path else RangeStore()
    return _store


def _save() -> None:
    if _db_path and _store is not None:
        _store.save(_db_path)


def _unmount_all() -> None:
    for _matrix, stack in _matrices.values():
        stack.close()
    _matrices.clear()


def _unmount(range_id: str) -> None:
    entry = _matrices.pop(range_id, None)
    if entry is not None:
        entry[1].close()


def _matrix_for(range_id: str, body: Dict[str, Any]) -> HandMatrix:
    """Mounted matrix of a range, created on first use; raises StoreError for unknown ranges."""
    store = _get_store()
    store.range(range_id)
    entry = _matrices.get(range_id)
    if entry is None:
        matrix = HandMatrix(store, range_id, geometry=_geometry_from_json(body.get("geometry")))
        stack = ExitStack()
        stack.enter_context(matrix.mounted(_hub))
        _matrices[range_id] = (matrix, stack)
    else:
        matrix = entry[0]
        if isinstance(body.get("geometry"), dict):
            matrix.engine.geometry = _geometry_from_json(body["geometry"])
    if body.get("activeAction"):
        matrix.set_active_action(str(body["activeAction"]))
    matrix.set_mode(
        read_only=_as_flag(body["readOnly"]) if "readOnly" in body else None,
        background=_as_flag(body["background"]) if "background" in body else None,
    )
    return matrix


def _as_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _geometry_from_json(obj: Any) -> Optional[GridGeometry]:
    if not isinstance(obj, dict):
        return None
    return GridGeometry(
        left=float(obj.get("left", 0.0)),
        top=float(obj.get("top", 0.0)),
        cell_size=float(obj.get("cellSize", 40.0)),
        gap=float(obj.get("gap", 0.0)),
    )


def _range_stats(store: RangeStore, hands: Dict[str, str]) -> Dict[str, Any]:
    return {
        "combos": combos_by_action(hands),
        "blended": blended_combos(hands, store.actions),
        "percent": range_percentages(hands, store.actions),
        "total": total_combinations(),
    }


def _error(message: str, status: int) -> Any:
    logger.info("%s %s -> %d: %s", request.method, request.path, status, message)
    return jsonify({"ok": False, "error": message}), status


@app.errorhandler(StoreError)
def _store_failure(e: StoreError) -> Any:
    # stored data that cannot be loaded
    logger.error("store unavailable: %s", e)
    return jsonify({"ok": False, "error": str(e)}), 500


# ---------- Grid & actions ----------

@app.get("/api/grid")
def api_grid() -> Any:
    return jsonify({
        "ok": True,
        "ranks": list(RANKS),
        "hands": [list(row) for row in HANDS],
        "combos": {h: combinations_of(h) for h in ALL_HANDS},
        "totalCombinations": total_combinations(),
    })


@app.get("/api/actions")
def api_actions() -> Any:
    with _lock:
        store = _get_store()
        return jsonify({"ok": True, "actions": [action_to_json(a) for a in store.actions]})


@app.post("/api/actions")
def api_save_action() -> Any:
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return _error("action object required", 400)
    try:
        action = action_from_json(body)
    except (KeyError, TypeError, ValueError) as e:
        return _error(f"bad action: {e}", 400)
    with _lock:
        store = _get_store()
        try:
            store.save_action(action)
        except ActionError as e:
            return _error(str(e), 400)
        _save()
        return jsonify({"ok": True, "actions": [action_to_json(a) for a in store.actions]})


@app.delete("/api/actions/<action_id>")
def api_delete_action(action_id: str) -> Any:
    with _lock:
        store = _get_store()
        if find_action(action_id, store.actions) is None:
            return _error(f"unknown action: {action_id}", 404)
        try:
            store.delete_action(action_id)
        except StoreError as e:
            return _error(str(e), 400)
        _save()
        return jsonify({"ok": True, "actions": [action_to_json(a) for a in store.actions]})


# ---------- Folders & ranges ----------

@app.get("/api/folders")
def api_folders() -> Any:
    with _lock:
        store = _get_store()
        return jsonify({"ok": True, "folders": [folder_to_json(f) for f in store.folders]})


@app.post("/api/folders")
def api_add_folder() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    name = str(body.get("name", "")).strip()
    if not name:
        return _error("name required", 400)
    with _lock:
        folder = _get_store().add_folder(name)
        _save()
        return jsonify({"ok": True, "folder": folder_to_json(folder)})


@app.post("/api/folders/<folder_id>/ranges")
def api_add_range(folder_id: str) -> Any:
    body = request.get_json(force=True, silent=True) or {}
    name = str(body.get("name", "")).strip()
    if not name:
        return _error("name required", 400)
    with _lock:
        try:
            r = _get_store().add_range(folder_id, name)
        except StoreError as e:
            return _error(str(e), 404)
        _save()
        return jsonify({"ok": True, "range": {"id": r.id, "name": r.name, "hands": r.hands}})


@app.delete("/api/ranges/<range_id>")
def api_delete_range(range_id: str) -> Any:
    with _lock:
        try:
            _get_store().delete_range(range_id)
        except StoreError as e:
            return _error(str(e), 404)
        _unmount(range_id)
        _save()
        return jsonify({"ok": True})


@app.get("/api/ranges/<range_id>")
def api_range(range_id: str) -> Any:
    with _lock:
        store = _get_store()
        try:
            matrix = _matrix_for(range_id, dict(request.args))
        except StoreError as e:
            return _error(str(e), 404)
        r = store.range(range_id)
        return jsonify({
            "ok": True,
            "range": {"id": r.id, "name": r.name, "hands": dict(r.hands)},
            "activeAction": matrix.active_action_id,
            "rows": matrix.rows(),
            "stats": _range_stats(store, r.hands),
        })


@app.post("/api/ranges/<range_id>/input")
def api_range_input(range_id: str) -> Any:
    body = request.get_json(force=True, silent=True) or {}
    events = body.get("events")
    if not isinstance(events, list):
        return _error("events list required", 400)
    with _lock:
        try:
            matrix = _matrix_for(range_id, body)
        except StoreError as e:
            return _error(str(e), 404)
        ignored: List[int] = []
        for i, ev in enumerate(events):
            if not isinstance(ev, dict):
                ignored.append(i)
                continue
            if not matrix.dispatch(str(ev.get("type", "")), hand=ev.get("hand"), x=ev.get("x"), y=ev.get("y")):
                ignored.append(i)
        _save()
        hands = dict(_get_store().range(range_id).hands)
        return jsonify({
            "ok": True,
            "hands": hands,
            "state": matrix.engine.state,
            "mode": matrix.engine.mode,
            "ignored": ignored,
        })


@app.post("/api/ranges/<range_id>/mutate")
def api_range_mutate(range_id: str) -> Any:
    body = request.get_json(force=True, silent=True) or {}
    mode = body.get("mode")
    if mode not in (SELECT, DESELECT):
        return _error("mode must be 'select' or 'deselect'", 400)
    active = str(body.get("activeAction", ""))
    if not active:
        return _error("activeAction required", 400)
    with _lock:
        try:
            hands = _get_store().apply_mutation(range_id, str(body.get("hand", "")), mode, active)
        except StoreError as e:
            return _error(str(e), 404)
        _save()
        return jsonify({"ok": True, "hands": dict(hands)})


# ---------- Export / import & trainings ----------

@app.get("/api/export")
def api_export() -> Any:
    with _lock:
        return jsonify(_get_store().to_json())


@app.post("/api/import")
def api_import() -> Any:
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return _error("JSON object required", 400)
    with _lock:
        try:
            _get_store().import_json(body)
        except ValueError as e:
            return _error(str(e), 400)
        _unmount_all()
        _save()
        return jsonify({"ok": True})


@app.get("/api/trainings/<training_id>/stats")
def api_training_stats(training_id: str) -> Any:
    with _lock:
        stats = _get_store().training_statistics
        return jsonify({
            "ok": True,
            "summary": training_summary(stats, training_id),
            "sessions": training_history(stats, training_id),
        })


@app.post("/api/trainings/<training_id>/sessions")
def api_record_session(training_id: str) -> Any:
    body = request.get_json(force=True, silent=True) or {}
    try:
        args = (int(body["timestamp"]), int(body["duration"]), int(body["totalQuestions"]), int(body["correctAnswers"]))
    except (KeyError, TypeError, ValueError) as e:
        return _error(f"bad session: {e}", 400)
    with _lock:
        stat = _get_store().record_session(training_id, *args)
        _save()
        return jsonify({"ok": True, "session": stat})


if __name__ == "__main__":
    from range_core.config import setup_logging

    setup_logging(settings.debug)
    app.run(host=settings.host, port=settings.port, debug=settings.debug)

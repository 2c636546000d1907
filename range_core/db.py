from __future__ import annotations

import json
import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

# Document keys kept in the store table
FOLDERS = 'folders'
ACTIONS = 'actions'
TRAININGS = 'trainings'
TRAINING_STATISTICS = 'training_statistics'
KEYS = (FOLDERS, ACTIONS, TRAININGS, TRAINING_STATISTICS)


def _ensure_db_dir(db_path: str) -> None:
    """Ensures the directory for the SQLite DB exists before connecting."""
    directory = os.path.dirname(db_path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


def _resolve_db_path(db_path: str) -> str:
    """Resolves a potentially unwritable DB path to a writable one, creating the directory if needed."""
    try:
        _ensure_db_dir(db_path)
        return db_path
    except PermissionError:
        logger.warning("cannot create directory for %s; looking for a writable location", db_path)
    candidates = [
        os.getenv('RANGES_DB_DIR'),
        os.path.join(os.getcwd(), 'data'),
        '/tmp',
    ]
    base = os.path.basename(db_path) or 'ranges.db'
    for d in candidates:
        if not d:
            continue
        try:
            os.makedirs(d, exist_ok=True)
            return os.path.join(d, base)
        except OSError:
            continue
    return base


def _ensure_db(conn: sqlite3.Connection) -> None:
    """Ensures the document table exists."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS documents (
            key TEXT PRIMARY KEY,
            body TEXT NOT NULL,
            saved_at TEXT NOT NULL
        )
        """
    )
    conn.commit()


def db_load_document(db_path: str, key: str) -> Optional[Any]:
    """Loads one JSON document; None when it was never stored."""
    resolved = _resolve_db_path(db_path)
    conn = sqlite3.connect(resolved)
    try:
        _ensure_db(conn)
        row = conn.execute("SELECT body FROM documents WHERE key = ?", (key,)).fetchone()
        if not row:
            return None
        return json.loads(row[0])
    finally:
        conn.close()


def db_load_all(db_path: str, keys: Iterable[str] = KEYS) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key in keys:
        doc = db_load_document(db_path, key)
        if doc is not None:
            out[key] = doc
    return out


def db_store_documents(db_path: str, docs: Dict[str, Any]) -> None:
    """Stores several JSON documents in one transaction."""
    resolved = _resolve_db_path(db_path)
    conn = sqlite3.connect(resolved)
    try:
        _ensure_db(conn)
        saved_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        conn.executemany(
            "INSERT OR REPLACE INTO documents (key, body, saved_at) VALUES (?, ?, ?)",
            [(key, json.dumps(body), saved_at) for key, body in docs.items()],
        )
        conn.commit()
        logger.debug("stored %s in %s", ", ".join(sorted(docs)), resolved)
    finally:
        conn.close()

from __future__ import annotations

import os
import sys
import logging
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    db_path: str
    host: str
    port: int
    debug: bool


def _as_bool(value: str, default: bool = False) -> bool:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def load_settings() -> Settings:
    return Settings(
        db_path=os.getenv("RANGES_DB", os.path.join("data", "ranges.db")),
        host=os.getenv("RANGES_HOST", "127.0.0.1"),
        port=int(os.getenv("RANGES_PORT", "5000")),
        debug=_as_bool(os.getenv("FLASK_DEBUG", os.getenv("DEBUG", "0"))),
    )


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(levelname)s %(name)s: %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)],
    )

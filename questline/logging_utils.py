"""Minimal structured logging helper.

Emits key=value pairs (or one JSON object per line) with a timestamp and
level, for domain events that are easier to grep than prose: quest
completions, level ups, streak updates. Stdlib ``logging`` (configured in
``server._configure_logging``) carries request errors and tracebacks; this
helper writes one flat record per domain event (errors to stderr), with its own
threshold (``QUESTLINE_LOG_LEVEL``) and JSON switch (``QUESTLINE_LOG_JSON``),
so event lines stay parseable regardless of handler setup.

Usage:
    from questline.logging_utils import get_logger
    log = get_logger("progress")
    log.info(event="level_up", user_id=7, level=4)

Reserved keys: level, ts. None values are dropped.
"""

from __future__ import annotations

import json
import os
import sys
import time

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
CURRENT_LEVEL = LEVELS.get(os.getenv("QUESTLINE_LOG_LEVEL", "info"), 20)
JSON_MODE = os.getenv("QUESTLINE_LOG_JSON", "0") in ("1", "true", "TRUE", "yes", "on")


def _format(level: str, **fields):
    if JSON_MODE:
        rec = {k: v for k, v in fields.items() if v is not None}
        rec["level"] = level
        rec["ts"] = int(time.time())
        return json.dumps(rec, separators=(",", ":"), default=str)
    parts = [f"level={level}", f"ts={int(time.time())}"]
    for k, v in fields.items():
        if v is None:
            continue
        if isinstance(v, (int, float)):
            parts.append(f"{k}={v}")
        else:
            s = str(v).replace(" ", "_")
            parts.append(f"{k}={s}")
    return " ".join(parts)


class _Logger:
    def __init__(self, name: str | None = None):
        self.name = name or "questline"

    def _log(self, lvl: str, **fields):
        if LEVELS[lvl] < CURRENT_LEVEL:
            return
        fields.setdefault("logger", self.name)
        print(_format(lvl, **fields), file=sys.stdout if lvl != "error" else sys.stderr)

    def debug(self, **fields):
        self._log("debug", **fields)

    def info(self, **fields):
        self._log("info", **fields)

    def warn(self, **fields):
        self._log("warn", **fields)

    def error(self, **fields):
        self._log("error", **fields)


_LOGGER_CACHE = {}


def get_logger(name: str):
    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = _Logger(name)
    return _LOGGER_CACHE[name]


log = get_logger("questline")

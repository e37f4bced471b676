#!/usr/bin/env python3
"""JSONL counters and timers for Play Store operations.

Records go to ``<METRICS_ROOT>/metrics.log``, one JSON object per line, so no
collector process is needed. Keep label values short; long strings are cut.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict

from configs.config import Config

logger = logging.getLogger(__name__)

_MAX_LABEL_CHARS = 200


def _metrics_file() -> Path:
    root = Path(Config.METRICS_ROOT)
    root.mkdir(parents=True, exist_ok=True)
    return root / "metrics.log"


def _label(value: Any) -> Any:
    if isinstance(value, str) and len(value) > _MAX_LABEL_CHARS:
        return value[:_MAX_LABEL_CHARS] + "..."
    return value


def incr(name: str, value: Any = 1, **labels) -> None:
    """Append one metric record; no-op when METRICS_ENABLED is off.

    Write failures are logged and dropped; a metric never fails the caller.
    """
    if not Config.METRICS_ENABLED:
        return
    rec: Dict[str, Any] = {"ts": int(time.time()), "metric": name, "value": value}
    rec.update({k: _label(v) for k, v in labels.items()})
    try:
        with open(_metrics_file(), "a", encoding="utf-8") as f:
            f.write(json.dumps(rec, separators=(",", ":"), default=str) + "\n")
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        logger.warning(f"Dropping metric {name}: {e}")


class Timer:
    """Context manager recording ``<name>.latency_s`` and whether the block raised."""

    def __init__(self, name: str, **labels):
        self.name = name
        self.labels = labels
        self._t0 = 0.0

    def __enter__(self) -> "Timer":
        self._t0 = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        elapsed = time.perf_counter() - self._t0
        incr(f"{self.name}.latency_s", value=elapsed, raised=exc_type is not None, **self.labels)

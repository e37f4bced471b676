#!/usr/bin/env python3
"""Append-only audit log of mutating Play Store tool calls."""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional

from configs.config import Config

logger = logging.getLogger(__name__)


def audit_operation(
    tool: str,
    package_name: str,
    success: bool,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    root: Optional[str] = None,
) -> None:
    """Append a single JSON line per call, one file per package.

    Fields: ts, tool, package, success, message, details. A record that
    cannot be written is logged and dropped.
    """
    if not Config.AUDIT_ENABLED:
        return
    path = Path(root or Config.AUDIT_ROOT) / f"{package_name.replace('/', '#')}.audit.log"
    record = {
        "ts": int(time.time()),
        "tool": tool,
        "package": package_name,
        "success": bool(success),
        "message": message or "",
        "details": details or {},
    }
    line = json.dumps(record, separators=(",", ":"), default=str) + "\n"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        logger.warning(f"Dropping audit record for {tool} on {package_name}: {e}")

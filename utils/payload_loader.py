#!/usr/bin/env python3
"""Resolve tool payloads given either inline text or a file path."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from utils.play_errors import ResourceNotFound

logger = logging.getLogger(__name__)


def load_payload(inline: Optional[str], path: Optional[str], *, kind: str) -> str:
    """Return the payload text. A file path takes precedence over inline text.

    Raises:
        ResourceNotFound: If ``path`` is given but the file does not exist
        ValueError: If neither source is given
    """
    if path:
        p = Path(path)
        if not p.is_file():
            raise ResourceNotFound(f"{kind} file not found: {path}")
        logger.debug(f"Reading {kind} payload from {path}")
        return p.read_text(encoding="utf-8")
    if inline is None:
        raise ValueError(f"No {kind} payload provided")
    return inline

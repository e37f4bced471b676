#!/usr/bin/env python3
"""Recognize the one commit failure that can be recovered automatically.

The Play Developer API refuses to commit non-draft releases for an app that
has never been published. Everything else is terminal for an operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

DRAFT_ONLY_SIGNATURE = "Only releases with status draft may be created on draft app"


@dataclass(frozen=True)
class ErrorSignal:
    """Message and structured detail messages of one error in a cause chain."""

    message: str
    details: Tuple[str, ...] = ()


def collect_error_signals(error: BaseException) -> List[ErrorSignal]:
    """Flatten an error and its causes into a finite list of signals.

    Follows ``__cause__`` (or ``__context__`` when no explicit cause is set)
    and stops at the first exception already visited.
    """
    signals: List[ErrorSignal] = []
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        details = getattr(current, "details", None) or ()
        if isinstance(details, str):
            details = (details,)
        signals.append(ErrorSignal(str(current), tuple(str(d) for d in details)))
        current = current.__cause__ or current.__context__
    return signals


def matches_draft_only_signature(error: Union[BaseException, Sequence[ErrorSignal]]) -> bool:
    """Return True if any message or detail message contains the draft-only signature."""
    signals = collect_error_signals(error) if isinstance(error, BaseException) else error
    target = DRAFT_ONLY_SIGNATURE.casefold()
    for signal in signals:
        if target in signal.message.casefold():
            return True
        if any(target in detail.casefold() for detail in signal.details):
            return True
    return False

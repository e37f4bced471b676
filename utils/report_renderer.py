#!/usr/bin/env python3
"""Plain-text reports returned to the agent for each tool call."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from utils.play_models import DeploymentResult, OperationResult

RULE = "================================"

Field = Tuple[str, Any]


def _now() -> str:
	return datetime.now(timezone.utc).isoformat()


def shorten(text: Optional[str], limit: int = 120) -> Optional[str]:
	if text is None or len(text) <= limit:
		return text
	return text[:limit] + "..."


def _field_lines(fields: Iterable[Field]) -> List[str]:
	# None values are optional fields that were not supplied
	return [f"{label}: {value}" for label, value in fields if value is not None]


def render_report(
	result: Union[OperationResult, DeploymentResult],
	*,
	success_title: str,
	failure_title: str,
	fields: Sequence[Field],
	failure_fields: Optional[Sequence[Field]] = None,
	success_fields: Sequence[Field] = (),
	timestamp_label: str = "Completed at",
	success_marker: str = "✅ ",
) -> str:
	"""Render one tool result.

	``failure_fields`` defaults to ``fields``; ``success_fields`` are appended
	after ``fields`` on success only.
	"""
	if result.success:
		lines = [success_title, RULE]
		lines += _field_lines(fields)
		lines += _field_lines(success_fields)
		lines += ["", f"{success_marker}{result.message}", f"{timestamp_label}: {_now()}"]
	else:
		lines = [failure_title, RULE]
		lines += _field_lines(failure_fields if failure_fields is not None else fields)
		lines += ["", f"Error: {result.message}"]
		if result.error is not None:
			lines.append(f"Details: {result.error}")
	return "\n".join(lines) + "\n"


def render_releases(result: OperationResult) -> str:
	"""Releases are returned as pretty JSON so the agent can parse them."""
	if not result.success:
		lines = ["❌ Fetching Releases Failed", RULE, f"Package Name: {result.details.get('packageName')}", ""]
		lines.append(f"Error: {result.message}")
		if result.error is not None:
			lines.append(f"Details: {result.error}")
		return "\n".join(lines) + "\n"
	return json.dumps(result.details, indent=2, default=str)

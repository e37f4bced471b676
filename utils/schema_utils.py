#!/usr/bin/env python3
from typing import Any, Dict, Type
from pydantic import BaseModel


def _strip_titles(node: Any) -> Any:
	if isinstance(node, dict):
		return {k: _strip_titles(v) for k, v in node.items() if k != "title" or not isinstance(v, str)}
	if isinstance(node, list):
		return [_strip_titles(v) for v in node]
	return node


def to_json_schema(model_cls: Type[BaseModel]) -> Dict[str, Any]:
	"""Return the tool input schema for a request model.

	Property names are the camelCase aliases; pydantic's generated titles
	are dropped since tool descriptions already carry that text.
	"""
	schema = model_cls.model_json_schema(by_alias=True, mode="validation")
	schema.pop("description", None)
	return _strip_titles(schema)

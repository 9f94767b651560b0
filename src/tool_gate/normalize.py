# normalize.py
# Argument normalization for model-issued tool calls.
#
# Some models serialize nested object/array arguments as JSON strings, e.g.
# {"where": "{\"field\": \"name\", ...}"}. Those values are parsed back into
# structured form before schema validation, so a structurally valid nested
# argument is never rejected for being a string.
#
# Best-effort and total: a value that fails to parse is left untouched and
# validation gets to report it.
#
# stdlib only, zero external dependencies.

import json
from typing import Any


def _maybe_parse(value: str) -> Any:
    if not value.startswith(("{", "[")):
        return value
    try:
        parsed = json.loads(value)
    except (ValueError, RecursionError):
        return value
    # A parsed object is normalized too, so a second pass finds nothing left to do.
    if isinstance(parsed, dict):
        return normalize(parsed)
    return parsed


def normalize(args: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of `args` with stringified JSON objects/arrays parsed.

    Strings starting with '{' or '[' are parsed when they hold valid JSON.
    Nested mappings, including freshly parsed ones, are normalized recursively. Lists and primitives pass
    through unchanged. Never raises.
    """
    result: dict[str, Any] = {}
    for key, value in args.items():
        if isinstance(value, str):
            result[key] = _maybe_parse(value)
        elif isinstance(value, dict):
            result[key] = normalize(value)
        else:
            result[key] = value
    return result

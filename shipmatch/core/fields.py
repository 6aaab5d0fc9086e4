from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Dict, Sequence

def get_path(record: Dict[str, Any], path: str) -> Any:
    """Resolve a dotted path (``selectedRate.carrier``) inside nested dicts."""
    cur: Any = record
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur

def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list, tuple, set)):
        return len(value) == 0
    return False

def first_present(
    record: Dict[str, Any],
    paths: Sequence[str],
    default: Any = None,
    empty: Callable[[Any], bool] = is_empty,
) -> Any:
    # Paths are evaluated in order; with the default predicate 0 and False count as present.
    for path in paths:
        value = get_path(record, path)
        if not empty(value):
            return value
    return default

def plain_number(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Optional

def now_ts() -> int:
    return int(time.time())

def to_epoch(value: Any) -> Optional[int]:
    """Best-effort conversion of a stored or invoice date to epoch seconds.

    Accepts epoch numbers (including DynamoDB ``Decimal``), ISO-8601 strings
    (date or datetime, optional trailing ``Z``) and ``datetime`` objects.
    Returns ``None`` for anything it cannot read.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return int(dt.timestamp())
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp())
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

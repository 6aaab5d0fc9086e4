from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional

def client_ip_from_request(req) -> str:
    xff = req.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    client = getattr(req, "client", None)
    return client.host if client else "0.0.0.0"

def clean_identifier(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None

def unique_identifiers(values: Iterable[Any]) -> List[str]:
    out: List[str] = []
    for v in values:
        s = clean_identifier(v)
        if s and s not in out:
            out.append(s)
    return out

def to_amount(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(Decimal(str(value).strip().replace(",", "").lstrip("$")))
    except (InvalidOperation, ValueError):
        return 0.0

def is_blank_amount(value: Any) -> bool:
    # Zero and unparseable amounts fall through to the next monetary field.
    return to_amount(value) == 0

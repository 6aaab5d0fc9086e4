from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from boto3.dynamodb.conditions import Key

from shipmatch.auth.deps import require_caller
from shipmatch.core.aws import ddb_error_message
from shipmatch.core.fields import first_present, plain_number
from shipmatch.core.normalize import is_blank_amount, to_amount
from shipmatch.core.settings import S
from shipmatch.core.tables import T
from shipmatch.matching.ocr import expand_candidates
from shipmatch.metrics import record_search

logger = logging.getLogger(__name__)

MANUAL_CONFIDENCE = 0.7
MANUAL_STRATEGY = "manual_search"

CARRIER_FIELDS = ("carrier", "selectedCarrier", "selectedRate.carrier")
BOOKED_AT_FIELDS = ("bookedAt", "createdAt")
SHIP_FROM_FIELDS = ("shipFrom", "shipmentInfo.shipFrom")
SHIP_TO_FIELDS = ("shipTo", "shipmentInfo.shipTo")
TOTAL_FIELDS = ("markupRates.totalCharges", "totalCharges", "selectedRate.totalCharges")


def _lookup_fields():
    return (
        ("shipmentID", S.shipment_id_index),
        ("trackingNumber", S.tracking_number_index),
    )


def query_by_field(field: str, index_name: str, value: str, limit: int) -> List[Dict[str, Any]]:
    resp = T.shipments.query(
        IndexName=index_name,
        KeyConditionExpression=Key(field).eq(value),
        Limit=limit,
    )
    return list(resp.get("Items", []))


def collect_hits(candidates: Iterable[str]) -> List[Dict[str, Any]]:
    hits: List[Dict[str, Any]] = []
    for candidate in candidates:
        for field, index_name in _lookup_fields():
            hits.extend(query_by_field(field, index_name, candidate, S.manual_search_lookup_limit))
    return hits


def dedupe_hits(hits: Iterable[Dict[str, Any]], limit: Optional[int] = None) -> List[Dict[str, Any]]:
    limit = S.manual_search_max_results if limit is None else limit
    seen = set()
    out: List[Dict[str, Any]] = []
    for item in hits:
        key = item.get("id")
        if key in seen:
            continue
        seen.add(key)
        out.append(item)
        if len(out) >= limit:
            break
    return out


def shipment_total(record: Dict[str, Any]) -> Any:
    total = first_present(record, TOTAL_FIELDS, empty=is_blank_amount)
    return to_amount(total) if total is not None else 0


def project_shipment(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": record.get("id"),
        "shipmentID": record.get("shipmentID"),
        "selectedCarrier": first_present(record, CARRIER_FIELDS, "Unknown"),
        "bookedAt": plain_number(first_present(record, BOOKED_AT_FIELDS)),
        "shipFrom": first_present(record, SHIP_FROM_FIELDS),
        "shipTo": first_present(record, SHIP_TO_FIELDS),
        "totalCharges": shipment_total(record),
    }


def build_manual_match(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "shipment": project_shipment(record),
        "confidence": MANUAL_CONFIDENCE,
        "matchStrategy": MANUAL_STRATEGY,
    }


def search_shipments(ctx: Optional[Dict[str, Any]], search_term: Any) -> Dict[str, Any]:
    """Look up shipments whose ID or tracking number matches ``search_term``
    or any of its OCR-confusable spellings.

    Raises a 401 ``HTTPException`` when ``ctx`` carries no caller. Every other
    failure is returned as ``{"success": False, "message": ...}``.
    """
    user_sub = require_caller(ctx)
    if not isinstance(search_term, str) or not search_term.strip():
        record_search("invalid")
        return {"success": False, "message": "searchTerm is required"}

    term = search_term.strip()
    if len(term) > S.manual_search_max_term_length:
        record_search("invalid")
        return {"success": False, "message": f"searchTerm is too long (max {S.manual_search_max_term_length})"}

    try:
        candidates = expand_candidates(term)
        hits = collect_hits(candidates)
        matches = [build_manual_match(item) for item in dedupe_hits(hits)]
    except Exception as exc:
        logger.exception("manual shipment search failed for %s (term=%r)", user_sub, term)
        record_search("error")
        return {"success": False, "message": ddb_error_message(exc)}

    logger.info(
        "manual shipment search term=%r candidates=%d hits=%d matches=%d",
        term, len(candidates), len(hits), len(matches),
    )
    record_search("matched" if matches else "empty", len(candidates))
    return {"success": True, "matches": matches}

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from shipmatch.auth.deps import require_caller
from shipmatch.core.aws import ddb_error_message
from shipmatch.core.fields import first_present
from shipmatch.core.normalize import to_amount, unique_identifiers
from shipmatch.core.settings import S
from shipmatch.core.tables import T
from shipmatch.core.time import now_ts, to_epoch
from shipmatch.metrics import record_invoice_match
from shipmatch.services.shipment_search import project_shipment, query_by_field, shipment_total

logger = logging.getLogger(__name__)

ICAL_PATTERN = re.compile(r"\b(ICAL-[A-Z0-9]{6})\b", re.IGNORECASE)

DAY_SECONDS = 24 * 3600
DATE_WINDOW_SECONDS = 3 * DAY_SECONDS
REVIEW_THRESHOLD = 0.85

CONFIDENCE_ICAL_EXACT = 0.98
CONFIDENCE_ICAL_FIELD = 0.95
CONFIDENCE_TRACKING = 0.90
CONFIDENCE_REFERENCE = 0.85
CONFIDENCE_DATE_AMOUNT = 0.75

LOOKUP_LIMIT = 5
DATE_LOOKUP_LIMIT = 20

CARRIER_FILTER_FIELDS = ("selectedCarrier", "carrier", "carrierName")

_LOOKUP_ERRORS = (ClientError, BotoCoreError)


def _tracking_fields():
    return (
        ("trackingNumber", S.tracking_number_index),
        ("proNumber", S.pro_number_index),
        ("bookingReferenceNumber", S.booking_reference_index),
    )


def _reference_fields():
    return (
        ("referenceNumber", S.reference_number_index),
        ("shipperReferenceNumber", S.shipper_reference_index),
    )


def extract_identifiers(invoice_shipment: Dict[str, Any]) -> Dict[str, List[str]]:
    refs = invoice_shipment.get("references") or {}
    text_fields = [
        invoice_shipment.get("shipmentId"),
        invoice_shipment.get("description"),
        invoice_shipment.get("notes"),
        invoice_shipment.get("trackingNumber"),
        invoice_shipment.get("bolNumber"),
        refs.get("customerRef"),
        refs.get("invoiceRef"),
        *(invoice_shipment.get("chargeDescriptions") or []),
    ]
    ical_ids: List[str] = []
    for field in text_fields:
        if not field:
            continue
        ical_ids.extend(m.upper() for m in ICAL_PATTERN.findall(str(field)))

    return {
        "icalIds": unique_identifiers(ical_ids),
        "trackingNumbers": unique_identifiers([invoice_shipment.get("trackingNumber")]),
        "referenceNumbers": unique_identifiers([
            invoice_shipment.get("referenceNumber"),
            refs.get("customerRef"),
            refs.get("invoiceRef"),
            invoice_shipment.get("proNumber"),
            invoice_shipment.get("bolNumber"),
        ]),
    }


def connected_companies(user_sub: str, company_id: Optional[str]) -> Optional[List[str]]:
    """Companies the caller may see, or ``None`` for an unrestricted caller."""
    companies = unique_identifiers([company_id])
    user = T.users.get_item(Key={"user_sub": user_sub}).get("Item")
    if user:
        if user.get("role") == "superadmin":
            return None
        companies = unique_identifiers([*companies, *(user.get("connectedCompanies") or []), user.get("companyId")])
    return companies


def is_accessible(shipment: Dict[str, Any], companies: Optional[List[str]]) -> bool:
    if companies is None:
        return True
    return shipment.get("companyID") in companies or shipment.get("companyId") in companies


def is_carrier_match(shipment: Dict[str, Any], carrier: Optional[Dict[str, Any]]) -> bool:
    name = (carrier or {}).get("name")
    if not name:
        return True
    label = first_present(shipment, CARRIER_FILTER_FIELDS, "")
    return str(name).lower() in str(label).lower()


def _candidate(shipment, strategy, field, value, confidence) -> Dict[str, Any]:
    return {
        "shipment": shipment,
        "matchStrategy": strategy,
        "matchField": field,
        "matchValue": value,
        "confidence": confidence,
    }


class _Collector:
    def __init__(self, companies: Optional[List[str]], carrier: Optional[Dict[str, Any]]):
        self.companies = companies
        self.carrier = carrier
        self.matches: Dict[str, Dict[str, Any]] = {}

    def accepts(self, shipment: Dict[str, Any]) -> bool:
        return is_accessible(shipment, self.companies) and is_carrier_match(shipment, self.carrier)

    def offer(self, shipment: Dict[str, Any], strategy: str, field: str, value: str,
              confidence: float, replace_below: Optional[float] = None) -> None:
        if not self.accepts(shipment):
            return
        key = shipment.get("id")
        current = self.matches.get(key)
        if current is None or (replace_below is not None and current["confidence"] < replace_below):
            self.matches[key] = _candidate(shipment, strategy, field, value, confidence)


def find_by_ical_id(collector: _Collector, ical_ids: List[str]) -> None:
    for ical_id in ical_ids:
        try:
            item = T.shipments.get_item(Key={"id": ical_id}).get("Item")
            if item:
                collector.offer(item, "ICAL_ID_EXACT", "id", ical_id, CONFIDENCE_ICAL_EXACT,
                                replace_below=CONFIDENCE_ICAL_EXACT)
            for item in query_by_field("shipmentID", S.shipment_id_index, ical_id, LOOKUP_LIMIT):
                collector.offer(item, "ICAL_ID_FIELD", "shipmentID", ical_id, CONFIDENCE_ICAL_FIELD)
        except _LOOKUP_ERRORS as exc:
            logger.warning("ICAL ID lookup failed for %s: %s", ical_id, ddb_error_message(exc))


def _find_by_fields(collector: _Collector, values: List[str], fields, strategy: str, confidence: float) -> None:
    for value in values:
        for field, index_name in fields:
            try:
                items = query_by_field(field, index_name, value, LOOKUP_LIMIT)
            except _LOOKUP_ERRORS as exc:
                logger.warning("%s lookup on %s failed: %s", strategy, field, ddb_error_message(exc))
                continue
            for item in items:
                collector.offer(item, strategy, field, value, confidence, replace_below=confidence)


def find_by_tracking_number(collector: _Collector, tracking_numbers: List[str]) -> None:
    _find_by_fields(collector, tracking_numbers, _tracking_fields(), "TRACKING_NUMBER", CONFIDENCE_TRACKING)


def find_by_reference_number(collector: _Collector, references: List[str]) -> None:
    _find_by_fields(collector, references, _reference_fields(), "REFERENCE_NUMBER", CONFIDENCE_REFERENCE)


def find_by_date_and_amount(collector: _Collector, invoice_shipment: Dict[str, Any]) -> None:
    # Needs a company partition to range over bookedAt; unrestricted callers skip it.
    ship_ts = to_epoch(invoice_shipment.get("shipmentDate") or invoice_shipment.get("shipDate"))
    if ship_ts is None or not collector.companies:
        return
    amount = to_amount(invoice_shipment.get("totalAmount"))
    for company in collector.companies:
        try:
            resp = T.shipments.query(
                IndexName=S.company_booked_at_index,
                KeyConditionExpression=Key("companyID").eq(company)
                & Key("bookedAt").between(ship_ts - DATE_WINDOW_SECONDS, ship_ts + DATE_WINDOW_SECONDS),
                Limit=DATE_LOOKUP_LIMIT,
            )
        except _LOOKUP_ERRORS as exc:
            logger.warning("date/amount lookup failed for company %s: %s", company, ddb_error_message(exc))
            continue
        for item in resp.get("Items", []):
            shipment_amount = shipment_total(item)
            if shipment_amount <= 0 or amount <= 0:
                continue
            pct_diff = abs(amount - shipment_amount) / shipment_amount
            if pct_diff <= 0.10:
                collector.offer(
                    item,
                    "DATE_AMOUNT",
                    "date+amount",
                    f"{invoice_shipment.get('shipmentDate') or invoice_shipment.get('shipDate')} + ${amount:g}",
                    CONFIDENCE_DATE_AMOUNT - pct_diff * 2,
                )


def score_matches(candidates: List[Dict[str, Any]], invoice_shipment: Dict[str, Any]) -> List[Dict[str, Any]]:
    invoice_ts = to_epoch(invoice_shipment.get("shipmentDate"))
    invoice_amount = to_amount(invoice_shipment.get("totalAmount"))
    scored = []
    for match in candidates:
        shipment = match["shipment"]
        score = match.get("confidence") or 0.5
        booked_ts = to_epoch(shipment.get("bookedAt"))
        if invoice_ts is not None and booked_ts is not None:
            if abs(invoice_ts - booked_ts) / DAY_SECONDS <= 3:
                score += 0.05
        shipment_amount = shipment_total(shipment)
        if invoice_amount and shipment_amount:
            if abs(invoice_amount - shipment_amount) / shipment_amount < 0.05:
                score += 0.05
        scored.append({**match, "confidence": round(min(score, 1.0), 4)})
    return sorted(scored, key=lambda m: m["confidence"], reverse=True)


def determine_match_status(scored: List[Dict[str, Any]]) -> str:
    if not scored:
        return "NO_MATCH"
    confidence = scored[0]["confidence"]
    if confidence >= 0.95:
        return "EXCELLENT"
    if confidence >= 0.85:
        return "GOOD"
    if confidence >= 0.70:
        return "FAIR"
    return "POOR"


def _public_match(match: Dict[str, Any]) -> Dict[str, Any]:
    return {**match, "shipment": project_shipment(match["shipment"])}


def log_match_attempt(match_result: Dict[str, Any], user_sub: str) -> None:
    best = match_result.get("bestMatch") or {}
    item = {
        "log_id": uuid4().hex,
        "created_at": match_result["timestamp"],
        "user_sub": user_sub,
        "invoice_shipment_id": (match_result["invoiceShipment"] or {}).get("shipmentId"),
        "match_found": bool(best),
        "confidence": str(match_result["confidence"]),
        "status": match_result["status"],
        "carrier_filtered": match_result["carrierFiltered"],
        "matched_shipment_id": (best.get("shipment") or {}).get("shipmentID"),
    }
    try:
        T.match_log.put_item(Item={k: v for k, v in item.items() if v is not None})
    except _LOOKUP_ERRORS as exc:
        logger.warning("failed to log match attempt: %s", ddb_error_message(exc))


def match_invoice_shipment(
    ctx: Optional[Dict[str, Any]],
    invoice_shipment: Optional[Dict[str, Any]],
    carrier: Optional[Dict[str, Any]] = None,
    company_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Match one shipment line from a carrier invoice to stored shipments.

    Lookups run strategy by strategy (ICAL ID, tracking/PRO numbers,
    references, booked date + amount); a failing lookup is logged and skipped.
    Candidates are restricted to the caller's companies and, when given, to the
    invoice's carrier, then scored and classified.
    """
    user_sub = require_caller(ctx)
    if not invoice_shipment:
        return {"success": False, "message": "invoiceShipment is required"}

    try:
        companies = connected_companies(user_sub, company_id)
        identifiers = extract_identifiers(invoice_shipment)
        logger.info("matching invoice shipment %s identifiers=%s", invoice_shipment.get("shipmentId"), identifiers)

        collector = _Collector(companies, carrier)
        if identifiers["icalIds"]:
            find_by_ical_id(collector, identifiers["icalIds"])
        if identifiers["trackingNumbers"]:
            find_by_tracking_number(collector, identifiers["trackingNumbers"])
        if identifiers["referenceNumbers"]:
            find_by_reference_number(collector, identifiers["referenceNumbers"])
        find_by_date_and_amount(collector, invoice_shipment)

        scored = [_public_match(m) for m in score_matches(list(collector.matches.values()), invoice_shipment)]
        best = scored[0] if scored else None
        match_result = {
            "invoiceShipment": invoice_shipment,
            "matches": scored,
            "bestMatch": best,
            "confidence": best["confidence"] if best else 0,
            "status": determine_match_status(scored),
            "reviewRequired": best is None or best["confidence"] < REVIEW_THRESHOLD,
            "carrierFiltered": bool(carrier),
            "detectedCarrier": (carrier or {}).get("name") or "Unknown",
            "timestamp": now_ts(),
        }
    except Exception as exc:
        logger.exception("invoice shipment matching failed for %s", user_sub)
        record_invoice_match("ERROR")
        return {"success": False, "message": ddb_error_message(exc)}

    log_match_attempt(match_result, user_sub)
    record_invoice_match(match_result["status"])
    return {"success": True, "matchResult": match_result}

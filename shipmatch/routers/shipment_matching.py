from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from shipmatch.auth.deps import get_caller_context
from shipmatch.models import InvoiceMatchReq, ManualSearchReq
from shipmatch.services.audit import audit_event
from shipmatch.services.invoice_matching import match_invoice_shipment
from shipmatch.services.shipment_search import search_shipments

router = APIRouter(prefix="/ui/shipments/match", tags=["shipment-matching"])


@router.post("/search")
async def ui_search_shipments(req: Request, body: ManualSearchReq, ctx=Depends(get_caller_context)):
    resp = search_shipments(ctx, body.search_term)
    audit_event(
        "shipment_manual_search",
        ctx["user_sub"],
        req,
        outcome="success" if resp["success"] else "failure",
        match_count=len(resp.get("matches", [])),
    )
    return resp


@router.post("/invoice")
async def ui_match_invoice_shipment(req: Request, body: InvoiceMatchReq, ctx=Depends(get_caller_context)):
    carrier = body.carrier.model_dump(exclude_none=True) if body.carrier else None
    resp = match_invoice_shipment(ctx, body.invoice_payload(), carrier, body.company_id)
    result = resp.get("matchResult") or {}
    audit_event(
        "invoice_shipment_match",
        ctx["user_sub"],
        req,
        outcome="success" if resp["success"] else "failure",
        status=result.get("status"),
    )
    return resp

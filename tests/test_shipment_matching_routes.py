import asyncio
import unittest
from types import SimpleNamespace
from unittest.mock import patch

from shipmatch.models import InvoiceMatchReq, ManualSearchReq
from shipmatch.routers import shipment_matching


def run_async(coro):
    return asyncio.run(coro)


def build_request():
    return SimpleNamespace(headers={"user-agent": "agent"}, client=None, state=SimpleNamespace())


def build_ctx():
    return {"user_sub": "user"}


class TestShipmentMatchingRoutes(unittest.TestCase):
    def test_manual_search(self):
        body = ManualSearchReq(searchTerm="ICAL-0O1")
        found = {"success": True, "matches": [{"shipment": {"id": "s1"}, "confidence": 0.7, "matchStrategy": "manual_search"}]}
        with patch.object(shipment_matching, "search_shipments", return_value=found) as search_mock:
            with patch.object(shipment_matching, "audit_event") as audit_mock:
                resp = run_async(shipment_matching.ui_search_shipments(build_request(), body, ctx=build_ctx()))
        search_mock.assert_called_once_with(build_ctx(), "ICAL-0O1")
        audit_mock.assert_called_once()
        self.assertEqual(audit_mock.call_args.kwargs["match_count"], 1)
        self.assertEqual(resp, found)

    def test_manual_search_failure_is_passed_through(self):
        body = ManualSearchReq.model_validate({"searchTerm": 42})
        failed = {"success": False, "message": "searchTerm is required"}
        with patch.object(shipment_matching, "search_shipments", return_value=failed) as search_mock:
            with patch.object(shipment_matching, "audit_event") as audit_mock:
                resp = run_async(shipment_matching.ui_search_shipments(build_request(), body, ctx=build_ctx()))
        search_mock.assert_called_once_with(build_ctx(), 42)
        self.assertEqual(audit_mock.call_args.kwargs["outcome"], "failure")
        self.assertEqual(resp, failed)

    def test_manual_search_body_defaults_to_missing_term(self):
        self.assertIsNone(ManualSearchReq.model_validate({}).search_term)
        self.assertEqual(ManualSearchReq.model_validate({"search_term": "x"}).search_term, "x")

    def test_invoice_match(self):
        body = InvoiceMatchReq.model_validate({
            "invoiceShipment": {"shipmentId": "ICAL-ABC123", "totalAmount": 10.5},
            "carrier": {"name": "Acme"},
            "companyId": "C1",
        })
        matched = {"success": True, "matchResult": {"status": "GOOD"}}
        with patch.object(shipment_matching, "match_invoice_shipment", return_value=matched) as match_mock:
            with patch.object(shipment_matching, "audit_event") as audit_mock:
                resp = run_async(shipment_matching.ui_match_invoice_shipment(build_request(), body, ctx=build_ctx()))
        match_mock.assert_called_once_with(
            build_ctx(),
            {"shipmentId": "ICAL-ABC123", "totalAmount": 10.5},
            {"name": "Acme"},
            "C1",
        )
        self.assertEqual(audit_mock.call_args.kwargs["status"], "GOOD")
        self.assertEqual(resp, matched)

    def test_invoice_shipment_accepts_epoch_date_and_formatted_amount(self):
        body = InvoiceMatchReq.model_validate({
            "invoiceShipment": {"shipDate": 1714521600, "totalAmount": "$1,234.50"},
        })
        self.assertEqual(body.invoice_payload(), {"shipDate": 1714521600, "totalAmount": "$1,234.50"})

    def test_invoice_match_without_shipment(self):
        body = InvoiceMatchReq.model_validate({})
        self.assertIsNone(body.invoice_payload())
        self.assertEqual(InvoiceMatchReq.model_validate({"invoiceShipment": {}}).invoice_payload(), {})

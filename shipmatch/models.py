from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

class ManualSearchReq(BaseModel):
    # Type checking of the term is left to the service so that a bad value
    # produces a success:false body instead of a 422.
    model_config = ConfigDict(populate_by_name=True)
    search_term: Any = Field(default=None, validation_alias=AliasChoices("searchTerm", "search_term"))

class CarrierRef(BaseModel):
    model_config = ConfigDict(extra="allow")
    name: Optional[str] = None

class InvoiceReferences(BaseModel):
    model_config = ConfigDict(extra="allow")
    customerRef: Optional[str] = None
    invoiceRef: Optional[str] = None

class InvoiceShipmentIn(BaseModel):
    model_config = ConfigDict(extra="allow")
    shipmentId: Optional[str] = None
    trackingNumber: Optional[str] = None
    referenceNumber: Optional[str] = None
    proNumber: Optional[str] = None
    bolNumber: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    # Dates may be ISO strings or epoch seconds; amounts may be formatted text.
    shipmentDate: Any = None
    shipDate: Any = None
    totalAmount: Any = None
    references: Optional[InvoiceReferences] = None
    chargeDescriptions: List[str] = Field(default_factory=list)

class InvoiceMatchReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    invoice_shipment: Optional[InvoiceShipmentIn] = Field(
        default=None, validation_alias=AliasChoices("invoiceShipment", "invoice_shipment"),
    )
    carrier: Optional[CarrierRef] = None
    company_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("companyId", "company_id"))

    def invoice_payload(self) -> Optional[Dict[str, Any]]:
        if self.invoice_shipment is None:
            return None
        return self.invoice_shipment.model_dump(exclude_none=True, exclude_defaults=True)

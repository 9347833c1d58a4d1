from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from invoicing.models import Address, LineItem, TaxMode


class InvoiceDraft(BaseModel):
    """Invoice as submitted by the form; id and totals are derived on save."""

    client_name: str = ""
    invoice_date: Optional[date] = None
    bill_from: Optional[Address] = None
    bill_to: Optional[Address] = None
    items: List[LineItem] = Field(default_factory=list)
    tax_mode: TaxMode = "auto"
    tax_percent: Optional[Decimal] = None
    project_description: Optional[str] = None
    terms_of_payment: Optional[str] = None
    suppliers_ref: Optional[str] = None
    other_ref: Optional[str] = None
    hsn: Optional[str] = None


class LedgerEntryRequest(BaseModel):
    """Either a payment (``method`` + ``amount``) or a manual entry (``particulars`` + ``dr``/``cr``)."""

    model_config = {"populate_by_name": True}

    entry_date: Optional[date] = Field(default=None, alias="date")
    method: Optional[str] = None
    amount: Optional[Decimal] = None
    particulars: Optional[str] = None
    dr: Optional[Decimal] = None
    cr: Optional[Decimal] = None

    @property
    def is_payment(self) -> bool:
        return self.method is not None


class CustomerCreate(BaseModel):
    name: str
    client_email: str = ""
    street_address: str = ""
    city: str = ""
    post_code: str = ""
    country: str = ""
    gstin: str = ""


class InvoiceCreated(BaseModel):
    message: str
    id: str
    total: Decimal


class MessageResponse(BaseModel):
    message: str

"""FastAPI surface for invoices, customer ledgers and printable statements."""

from __future__ import annotations

import logging
import os
from typing import List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from invoicing import services, store
from invoicing.config import get_settings
from invoicing.db import get_db, init_db
from invoicing.errors import InvoicingError, NotFoundError, PartialFailureError, PolicyViolation, ValidationError
from invoicing.models import Customer, CustomerBalance, Invoice, LedgerEntry, LedgerView, Page
from invoicing.reporting import render_invoice_html, render_statement_html
from invoicing.schemas import CustomerCreate, InvoiceCreated, InvoiceDraft, LedgerEntryRequest, MessageResponse

settings = get_settings()

logger = logging.getLogger("invoicing-api")
logging.basicConfig(level=settings["log_level"])

app = FastAPI(
    title="Invoicing & Ledger API",
    description="Tax invoices, per-customer running ledgers and paginated statements.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings["allowed_origins"] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event() -> None:
    init_db()


def _http_error(exc: InvoicingError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, PolicyViolation):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, PartialFailureError):
        logger.error("Partial failure (%s done, %s failed) for %s", exc.completed, exc.failed, exc.ref)
    return HTTPException(status_code=500, detail=str(exc))


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


# --- invoices --------------------------------------------------------------


@app.get("/invoices", response_model=List[Invoice])
def list_invoices(db: Session = Depends(get_db)) -> List[Invoice]:
    return store.list_invoices(db)


@app.post("/invoices", response_model=InvoiceCreated, status_code=201)
def create_invoice(draft: InvoiceDraft, db: Session = Depends(get_db)) -> InvoiceCreated:
    try:
        invoice = services.create_invoice(db, draft)
    except InvoicingError as exc:
        raise _http_error(exc) from exc
    return InvoiceCreated(message="Invoice created successfully", id=invoice.id, total=invoice.total)


@app.post("/invoices/mark-paid", response_model=Invoice)
def mark_paid(invoice_id: str = Body(..., embed=True, alias="id"), db: Session = Depends(get_db)) -> Invoice:
    try:
        return services.mark_invoice_paid(db, invoice_id)
    except InvoicingError as exc:
        raise _http_error(exc) from exc


# Invoice ids contain slashes ("DS/2024-25/0001"), hence the path converters.
@app.get("/invoices/{invoice_id:path}/html", response_class=HTMLResponse)
def invoice_html(invoice_id: str, db: Session = Depends(get_db)) -> HTMLResponse:
    try:
        invoice = store.get_invoice(db, invoice_id)
    except InvoicingError as exc:
        raise _http_error(exc) from exc
    return HTMLResponse(content=render_invoice_html(invoice))


@app.get("/invoices/{invoice_id:path}", response_model=Invoice)
def get_invoice(invoice_id: str, db: Session = Depends(get_db)) -> Invoice:
    try:
        return store.get_invoice(db, invoice_id)
    except InvoicingError as exc:
        raise _http_error(exc) from exc


@app.put("/invoices/{invoice_id:path}", response_model=Invoice)
def update_invoice(invoice_id: str, draft: InvoiceDraft, db: Session = Depends(get_db)) -> Invoice:
    try:
        return services.update_invoice(db, invoice_id, draft)
    except InvoicingError as exc:
        raise _http_error(exc) from exc


@app.delete("/invoices/{invoice_id:path}", response_model=MessageResponse)
def delete_invoice(invoice_id: str, db: Session = Depends(get_db)) -> MessageResponse:
    try:
        services.delete_invoice(db, invoice_id)
    except InvoicingError as exc:
        raise _http_error(exc) from exc
    return MessageResponse(message="Invoice deleted successfully")


# --- customers -------------------------------------------------------------


@app.get("/customers", response_model=List[CustomerBalance])
def list_customers(year: Optional[str] = Query(None), db: Session = Depends(get_db)) -> List[CustomerBalance]:
    try:
        return services.list_customer_balances(db, year)
    except InvoicingError as exc:
        raise _http_error(exc) from exc


@app.post("/customers", response_model=Customer, status_code=201)
def create_customer(payload: CustomerCreate, db: Session = Depends(get_db)) -> Customer:
    try:
        return store.save_customer(db, **payload.model_dump())
    except InvoicingError as exc:
        raise _http_error(exc) from exc


@app.put("/customers/{customer_id}", response_model=Customer)
def update_customer(customer_id: int, payload: CustomerCreate, db: Session = Depends(get_db)) -> Customer:
    try:
        return services.update_customer(db, customer_id, payload)
    except InvoicingError as exc:
        raise _http_error(exc) from exc


@app.delete("/customers/{customer_id}", response_model=MessageResponse)
def delete_customer(customer_id: int, db: Session = Depends(get_db)) -> MessageResponse:
    try:
        services.delete_customer(db, customer_id)
    except InvoicingError as exc:
        raise _http_error(exc) from exc
    return MessageResponse(message="Customer deleted")


@app.get("/items/suggestions", response_model=List[str])
def item_suggestions(db: Session = Depends(get_db)) -> List[str]:
    return services.list_item_suggestions(db)


# --- ledger ----------------------------------------------------------------


@app.put("/ledger/entries/{entry_id}", response_model=LedgerEntry)
def edit_entry(entry_id: int, payload: LedgerEntryRequest, db: Session = Depends(get_db)) -> LedgerEntry:
    try:
        return services.edit_ledger_entry(db, entry_id, payload)
    except InvoicingError as exc:
        raise _http_error(exc) from exc


@app.delete("/ledger/entries/{entry_id}", response_model=MessageResponse)
def delete_entry(entry_id: int, db: Session = Depends(get_db)) -> MessageResponse:
    try:
        services.remove_ledger_entry(db, entry_id)
    except InvoicingError as exc:
        raise _http_error(exc) from exc
    return MessageResponse(message="Entry deleted successfully")


@app.get("/ledger/{customer_name}", response_model=LedgerView)
def get_ledger(customer_name: str, year: Optional[str] = Query(None), db: Session = Depends(get_db)) -> LedgerView:
    try:
        customer = services.require_customer(db, customer_name)
        return services.get_ledger_view(db, customer, year)
    except InvoicingError as exc:
        raise _http_error(exc) from exc


@app.post("/ledger/{customer_name}", response_model=LedgerEntry, status_code=201)
def add_entry(customer_name: str, payload: LedgerEntryRequest, db: Session = Depends(get_db)) -> LedgerEntry:
    try:
        return services.record_ledger_entry(db, customer_name, payload)
    except InvoicingError as exc:
        raise _http_error(exc) from exc


@app.get("/ledger/{customer_name}/pages", response_model=List[Page])
def get_pages(
    customer_name: str,
    year: Optional[str] = Query(None),
    page_size: Optional[int] = Query(None),
    db: Session = Depends(get_db),
) -> List[Page]:
    try:
        return services.get_statement(db, customer_name, year, page_size).pages
    except InvoicingError as exc:
        raise _http_error(exc) from exc


@app.get("/ledger/{customer_name}/statement", response_class=HTMLResponse)
def get_statement(
    customer_name: str,
    year: Optional[str] = Query(None),
    page_size: Optional[int] = Query(None),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    try:
        statement = services.get_statement(db, customer_name, year, page_size)
    except InvoicingError as exc:
        raise _http_error(exc) from exc
    return HTMLResponse(content=render_statement_html(statement, settings["org_name"]))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("invoicing.app:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)

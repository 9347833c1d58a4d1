import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_invoicing.db")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from invoicing.db import session_scope  # noqa: E402
from invoicing.db_models import CustomerORM, InvoiceORM, LedgerEntryORM  # noqa: E402
from invoicing.models import Address, LineItem  # noqa: E402
from invoicing.schemas import InvoiceDraft  # noqa: E402


@pytest.fixture
def db():
    with session_scope() as session:
        session.query(LedgerEntryORM).delete()
        session.query(InvoiceORM).delete()
        session.query(CustomerORM).delete()
        session.commit()
        yield session


def make_draft(**overrides) -> InvoiceDraft:
    data = dict(
        client_name="Sparsh Multispeciality Hospital",
        invoice_date=date(2024, 6, 10),
        bill_from=Address(name="Designer Square", street_address="LIG-405, Dindayal Nagar", city="Bhilai"),
        bill_to=Address(street_address="Shriram Market, Ram Nagar", city="Bhilai", gstin="22AADCP8009N2Z9"),
        items=[
            LineItem(name="Signage design", quantity=2, rate=Decimal("100")),
            LineItem(name="Printing", quantity=1, rate=Decimal("50")),
        ],
        tax_mode="auto",
    )
    data.update(overrides)
    return InvoiceDraft(**data)


@pytest.fixture
def draft_factory():
    return make_draft

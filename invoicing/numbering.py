from __future__ import annotations

import logging
import re
from datetime import date, timedelta
from typing import Iterable, Optional, Tuple

from invoicing.config import DEFAULT_FY_START_MONTH, DEFAULT_INVOICE_PREFIX
from invoicing.errors import ValidationError

logger = logging.getLogger(__name__)

FY_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")
SEQUENCE_WIDTH = 4


def financial_year_of(day: date, start_month: int = DEFAULT_FY_START_MONTH) -> str:
    start_year = day.year if day.month >= start_month else day.year - 1
    return f"{start_year}-{(start_year + 1) % 100:02d}"


def financial_year(today: Optional[date] = None, start_month: int = DEFAULT_FY_START_MONTH) -> str:
    """Financial year key ("2024-25") containing ``today``."""
    return financial_year_of(today or date.today(), start_month)


def parse_financial_year(fy: str) -> int:
    match = FY_PATTERN.match(fy or "")
    if not match:
        raise ValidationError(f"Invalid or missing year format {fy!r}. Expected YYYY-YY.")
    start_year = int(match.group(1))
    if int(match.group(2)) != (start_year + 1) % 100:
        raise ValidationError(f"Invalid financial year {fy!r}: end year must follow {start_year}.")
    return start_year


def financial_year_bounds(fy: str, start_month: int = DEFAULT_FY_START_MONTH) -> Tuple[date, date]:
    """First and last calendar day (inclusive) of a financial year."""
    start_year = parse_financial_year(fy)
    start = date(start_year, start_month, 1)
    end = date(start_year + 1, start_month, 1) - timedelta(days=1)
    return start, end


def invoice_prefix(fy: str, org_prefix: str = DEFAULT_INVOICE_PREFIX) -> str:
    return f"{org_prefix}/{fy}/"


def _sequence_of(invoice_id: str, prefix: str) -> int:
    suffix = invoice_id[len(prefix):]
    try:
        return int(suffix)
    except ValueError:
        logger.warning("Malformed invoice id %r; treating its sequence as 0", invoice_id)
        return 0


def next_invoice_id(
    existing_ids_in_year: Iterable[str],
    today: Optional[date] = None,
    org_prefix: str = DEFAULT_INVOICE_PREFIX,
    start_month: int = DEFAULT_FY_START_MONTH,
) -> str:
    """Next sequential invoice id in the current financial year.

    Uses the highest existing sequence plus one, never the count, so numbers
    freed by deletions are not handed out again.
    """
    prefix = invoice_prefix(financial_year(today, start_month), org_prefix)
    highest = 0
    for invoice_id in existing_ids_in_year:
        if not invoice_id or not invoice_id.startswith(prefix):
            continue
        highest = max(highest, _sequence_of(invoice_id, prefix))
    return f"{prefix}{highest + 1:0{SEQUENCE_WIDTH}d}"


__all__ = [
    "financial_year",
    "financial_year_of",
    "parse_financial_year",
    "financial_year_bounds",
    "invoice_prefix",
    "next_invoice_id",
]

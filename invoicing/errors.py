from __future__ import annotations

from typing import Optional


class InvoicingError(Exception):
    """Base class for errors raised by the invoicing core and services."""


class ValidationError(InvoicingError, ValueError):
    """Bad or missing required input (empty items, negative tax percent, missing date...)."""


class PolicyViolation(InvoicingError):
    """Attempted mutation of a protected or invoice-linked ledger entry."""


class NotFoundError(InvoicingError, LookupError):
    """The store does not recognise the requested id."""


class PartialFailureError(InvoicingError):
    """A two-step cascade where the first step succeeded and the second failed."""

    def __init__(self, message: str, completed: str, failed: str, ref: Optional[str] = None) -> None:
        super().__init__(message)
        self.completed = completed
        self.failed = failed
        self.ref = ref


__all__ = [
    "InvoicingError",
    "ValidationError",
    "PolicyViolation",
    "NotFoundError",
    "PartialFailureError",
]

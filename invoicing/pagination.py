from __future__ import annotations

from typing import List, Sequence

from invoicing.config import DEFAULT_PAGE_SIZE
from invoicing.errors import ValidationError
from invoicing.models import DecoratedEntry, Page


def paginate(entries: Sequence[DecoratedEntry], page_size: int = DEFAULT_PAGE_SIZE) -> List[Page]:
    """Chunk balance-decorated rows into fixed-size statement pages.

    Rows keep their order and balances. The first page carries the year
    caption and the last page the totals row; an empty ledger yields no
    pages and the renderer supplies its own placeholder.
    """
    if page_size < 1:
        raise ValidationError(f"Page size must be at least 1, got {page_size}.")

    chunks = [list(entries[start:start + page_size]) for start in range(0, len(entries), page_size)]
    last = len(chunks) - 1
    return [
        Page(index=idx, entries=chunk, is_first_page=idx == 0, is_last_page=idx == last)
        for idx, chunk in enumerate(chunks)
    ]


__all__ = ["paginate"]

"""CLI for writing a customer's printable ledger statement to an HTML file."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from invoicing.config import get_settings
from invoicing.db import session_scope
from invoicing.errors import InvoicingError
from invoicing.reporting import render_statement_html
from invoicing.services import get_statement


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a customer ledger statement as HTML.")
    parser.add_argument("--customer", required=True, help="Customer name as stored in the ledger.")
    parser.add_argument("--year", default=None, help="Financial year, e.g. 2024-25. Defaults to the current one.")
    parser.add_argument("--page-size", type=int, default=None, help="Rows per printed page.")
    parser.add_argument("--output", required=True, help="Output HTML file path.")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = get_settings()

    with session_scope() as db:
        try:
            statement = get_statement(db, args.customer, args.year, args.page_size)
        except InvoicingError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    Path(args.output).write_text(render_statement_html(statement, settings["org_name"]), encoding="utf-8")
    print(f"Wrote {len(statement.pages)} page(s) for {statement.customer.name} ({statement.financial_year}) to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

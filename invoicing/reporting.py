from __future__ import annotations

import html
from typing import List

from invoicing.ledger import format_amount, format_date
from invoicing.models import Address, Invoice, Page, Statement
from invoicing.tax import format_percent, split_tax

COLUMNS = ("S.No", "Date", "Particulars", "Dr", "Cr", "Balance")


def _header_block(org_name: str, statement: Statement) -> str:
    escape = html.escape
    return f"""
      <header style="text-align:center; padding-bottom:12px; border-bottom:1px solid #000;">
        <h1 style="margin:0; font-size:22px;">{escape(org_name)}</h1>
        <p style="margin:4px 0; font-size:14px;">Ledger Account: {escape(statement.customer.name)}</p>
      </header>
    """


def _column_header() -> str:
    cells = "".join(f'<th style="text-align:left; padding:6px; border:1px solid #000;">{c}</th>' for c in COLUMNS)
    return f"<thead><tr>{cells}</tr></thead>"


def _page_rows(page: Page) -> str:
    escape = html.escape
    rows = []
    for entry in page.entries:
        rows.append(
            f"""
            <tr>
              <td style="padding:6px; border:1px solid #000;">{entry.s_no}</td>
              <td style="padding:6px; border:1px solid #000;">{escape(entry.date_display)}</td>
              <td style="padding:6px; border:1px solid #000;">{escape(entry.particulars)}</td>
              <td style="padding:6px; border:1px solid #000; text-align:right;">{entry.debit_display}</td>
              <td style="padding:6px; border:1px solid #000; text-align:right;">{entry.credit_display}</td>
              <td style="padding:6px; border:1px solid #000; text-align:right;">{entry.balance_display}</td>
            </tr>
            """
        )
    return "".join(rows)


def _totals_row(statement: Statement) -> str:
    totals = statement.view.totals
    return f"""
            <tr class="totals-row" style="font-weight:600;">
              <td colspan="3" style="padding:6px; border:1px solid #000; text-align:right;">Total</td>
              <td style="padding:6px; border:1px solid #000; text-align:right;">{format_amount(totals.total_debit)}</td>
              <td style="padding:6px; border:1px solid #000; text-align:right;">{format_amount(totals.total_credit)}</td>
              <td style="padding:6px; border:1px solid #000; text-align:right;">{format_amount(totals.final_balance)}</td>
            </tr>
    """


def render_statement_html(statement: Statement, org_name: str = "Designer Square") -> str:
    """Assemble a printable statement: one section per page, header on each."""
    header = _header_block(org_name, statement)
    sections: List[str] = []
    for page in statement.pages:
        caption = ""
        if page.is_first_page:
            caption = f'<p class="year-caption" style="margin:8px 0;">Financial Year: {html.escape(statement.financial_year)}</p>'
        totals = _totals_row(statement) if page.is_last_page else ""
        sections.append(
            f"""
    <section class="statement-page" style="page-break-after:always; padding:24px;">
      {header}
      {caption}
      <table style="width:100%; border-collapse:collapse; margin-top:8px; font-size:12px;">
        {_column_header()}
        <tbody>
          {_page_rows(page)}
          {totals}
        </tbody>
      </table>
    </section>
            """
        )

    if not sections:
        sections.append(
            f"""
    <section class="statement-page no-entries-page" style="padding:24px;">
      {header}
      <p style="margin:16px 0; color:#64748b;">No entries found for {html.escape(statement.financial_year)}.</p>
    </section>
            """
        )

    return f"""
    <!DOCTYPE html>
    <html lang="en">
      <head>
        <meta charset="UTF-8" />
        <title>{html.escape(statement.customer.name)} ledger</title>
      </head>
      <body style="font-family:Arial, sans-serif; margin:0; background:#fff;">
        {''.join(sections)}
      </body>
    </html>
    """


def _address_lines(address: Address) -> str:
    escape = html.escape
    parts = [address.name or "", address.street_address, address.city, address.post_code, address.country]
    lines = "".join(f"<div>{escape(p)}</div>" for p in parts if p)
    if address.gstin:
        lines += f"<div>GSTIN: {escape(address.gstin)}</div>"
    return lines


def render_invoice_html(invoice: Invoice) -> str:
    """Tax invoice with item table and the central/state tax split."""
    escape = html.escape
    rows = []
    for idx, item in enumerate(invoice.items, start=1):
        rows.append(
            f"""
            <tr>
              <td style="padding:6px; border:1px solid #000;">{idx:02d}.</td>
              <td style="padding:6px; border:1px solid #000;">{escape(item.name)}</td>
              <td style="padding:6px; border:1px solid #000; text-align:right;">{item.quantity} {escape(item.unit)}</td>
              <td style="padding:6px; border:1px solid #000; text-align:right;">{format_amount(item.rate)}</td>
              <td style="padding:6px; border:1px solid #000; text-align:right;">{format_amount(item.total)}</td>
            </tr>
            """
        )

    split = split_tax(invoice.tax_amount, invoice.tax_percent)
    half = format_percent(split["half_percent"])
    return f"""
    <!DOCTYPE html>
    <html lang="en">
      <head>
        <meta charset="UTF-8" />
        <title>Tax Invoice {escape(invoice.id)}</title>
      </head>
      <body style="font-family:Arial, sans-serif; margin:24px;">
        <h1 style="text-align:center; font-size:20px;">TAX INVOICE</h1>
        <p>Invoice No.: {escape(invoice.id)} &bull; Dated: {format_date(invoice.invoice_date)}</p>
        <div style="display:flex; gap:48px;">
          <div><strong>From</strong>{_address_lines(invoice.bill_from)}</div>
          <div><strong>To</strong><div>{escape(invoice.client_name)}</div>{_address_lines(invoice.bill_to)}</div>
        </div>
        <table style="width:100%; border-collapse:collapse; margin-top:16px; font-size:12px;">
          <thead>
            <tr>
              <th style="padding:6px; border:1px solid #000;">S.No</th>
              <th style="padding:6px; border:1px solid #000;">Description</th>
              <th style="padding:6px; border:1px solid #000;">Quantity</th>
              <th style="padding:6px; border:1px solid #000;">Rate</th>
              <th style="padding:6px; border:1px solid #000;">Amount</th>
            </tr>
          </thead>
          <tbody>
            {''.join(rows)}
          </tbody>
        </table>
        <p>Subtotal: {format_amount(invoice.subtotal)}</p>
        <p>GST ({format_percent(invoice.tax_percent)}%): {format_amount(invoice.tax_amount)}</p>
        <p>CGST ({half}%): {format_amount(split["cgst"])} &bull; SGST ({half}%): {format_amount(split["sgst"])}</p>
        <p><strong>Total: {format_amount(invoice.total)}</strong></p>
      </body>
    </html>
    """

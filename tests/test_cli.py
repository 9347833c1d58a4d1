from datetime import date
from decimal import Decimal

from invoicing import cli, services
from invoicing.schemas import LedgerEntryRequest


def test_cli_writes_statement(db, draft_factory, tmp_path, capsys):
    services.create_invoice(db, draft_factory(client_name="Acme"), today=date(2024, 6, 10))
    services.record_ledger_entry(db, "Acme", LedgerEntryRequest(date=date(2024, 6, 30), method="cash", amount=Decimal("45")))

    output = tmp_path / "acme.html"
    code = cli.main(["--customer", "Acme", "--year", "2024-25", "--page-size", "2", "--output", str(output)])

    assert code == 0
    html = output.read_text(encoding="utf-8")
    assert html.count('class="statement-page"') == 2
    assert "250.00" in html
    assert "Wrote 2 page(s) for Acme (2024-25)" in capsys.readouterr().out


def test_cli_unknown_customer(db, tmp_path, capsys):
    output = tmp_path / "missing.html"
    code = cli.main(["--customer", "Nobody", "--year", "2024-25", "--output", str(output)])
    assert code == 1
    assert not output.exists()
    assert "not found" in capsys.readouterr().err

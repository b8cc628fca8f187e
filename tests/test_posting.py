import pandas as pd
import pytest

from backoffice.accounts.directory import AccountDirectory, AccountRole, accounts_from_frame, default_chart
from backoffice.core.errors import AccountNotFound, MissingParameter, ValidationError
from backoffice.core.schemas import (
    AccountKind, Invoice, InvoiceKind, InvoiceRow, InvoiceRowStatus, LedgerAccount, VoucherType,
)
from backoffice.ledger.posting import (
    post_invoice_rows, record_fee_invoice, record_invoice, voucher_from_invoice,
)
from backoffice.tax.invoice_tax import build_invoice, fee_invoice_from_gross, fee_retention_rate, invoice_tax

def test_sale_invoice_voucher(parameters, directory):
    inv = build_invoice("2024-05-15", "1001", InvoiceKind.SALE, 100_000, parameters)
    assert (inv.net, inv.tax, inv.total) == (100_000, 19_000, 119_000)
    v = voucher_from_invoice(inv, directory)
    assert v.voucher_type == VoucherType.INGRESO
    assert v.description == "Venta Factura N° 1001"
    lines = {(e.account_id, e.debit, e.credit) for e in v.entries}
    assert lines == {(1101, 119_000, 0), (4101, 0, 100_000), (2105, 0, 19_000)}

def test_purchase_invoice_voucher(parameters, directory):
    inv = build_invoice("2024-05-20", "77", InvoiceKind.PURCHASE, 50_000, parameters)
    v = voucher_from_invoice(inv, directory)
    assert v.voucher_type == VoucherType.EGRESO
    lines = {(e.account_id, e.debit, e.credit) for e in v.entries}
    assert lines == {(5101, 50_000, 0), (1105, 9_500, 0), (2101, 0, 59_500)}

def test_exempt_invoice_two_lines(directory):
    inv = build_invoice("2024-05-20", "78", InvoiceKind.SALE, 40_000, [], exempt=True)
    assert inv.tax == 0
    v = voucher_from_invoice(inv, directory)
    assert len(v.entries) == 2

def test_invoice_tax_needs_iva():
    with pytest.raises(MissingParameter) as exc:
        invoice_tax(1000, [], "2024-05")
    assert exc.value.name == "IVA"

def test_invoice_amounts_must_add_up():
    with pytest.raises(ValidationError):
        Invoice("2024-05-01", "1", InvoiceKind.SALE, net=100, tax=19, total=120)

def test_missing_account_keeps_invoice(parameters):
    partial = [a for a in default_chart() if a.name != AccountRole.VAT_PAYABLE.value]
    inv = build_invoice("2024-05-15", "1002", InvoiceKind.SALE, 100_000, parameters)
    outcome = record_invoice(inv, AccountDirectory(partial))
    assert not outcome.posted
    assert outcome.primary is inv
    assert isinstance(outcome.error, AccountNotFound)
    assert outcome.error.name == "VAT-Payable"

def test_account_lookup_ignores_case(parameters):
    accounts = [LedgerAccount(7, "1101", "CLIENTES", AccountKind.ASSET)] + \
        [a for a in default_chart() if a.name != AccountRole.ACCOUNTS_RECEIVABLE.value]
    directory = AccountDirectory(accounts, names={AccountRole.ACCOUNTS_RECEIVABLE: "clientes"})
    inv = build_invoice("2024-05-15", "1003", InvoiceKind.SALE, 1_000, parameters)
    v = voucher_from_invoice(inv, directory)
    assert 7 in [e.account_id for e in v.entries]

def test_duplicate_account_names_rejected():
    with pytest.raises(ValidationError):
        AccountDirectory([
            LedgerAccount(1, "1101", "Caja", AccountKind.ASSET),
            LedgerAccount(2, "1102", "CAJA", AccountKind.ASSET),
        ])

def test_directory_missing_roles(directory):
    assert directory.missing(AccountRole.EXPENSE, "Anticipos") == ["Anticipos"]

def test_fee_invoice_voucher(directory):
    fee = fee_invoice_from_gross("2024-05-03", "55", 1_000_000)
    assert (fee.retention, fee.net) == (137_500, 862_500)
    outcome = record_fee_invoice(fee, directory)
    assert outcome.posted
    assert outcome.voucher.description == "Boleta de Honorarios N° 55"
    assert outcome.voucher.debit_total == 1_000_000

def test_fee_retention_unknown_year():
    with pytest.raises(ValidationError):
        fee_retention_rate(1999)

def test_invoice_rows_partial(parameters, directory):
    good = build_invoice("2024-05-15", "2001", InvoiceKind.SALE, 10_000, parameters)
    rows = [
        InvoiceRow(0, InvoiceRowStatus.OK, good),
        InvoiceRow(1, InvoiceRowStatus.ERROR, error="RUT emisor invalido"),
    ]
    result = post_invoice_rows(rows, directory)
    assert len(result.succeeded) == 1
    assert result.failed[0].row_index == 1
    assert result.failed[0].code == "ROW_REJECTED"

def test_accounts_from_frame():
    df = pd.DataFrame([
        {"id": 1, "code": "1101", "name": "Clientes"},
        {"id": 2, "code": "2105", "name": "IVA Debito Fiscal", "kind": "Pasivo"},
    ])
    accounts = accounts_from_frame(df)
    assert accounts[0].kind == AccountKind.ASSET
    assert accounts[1].kind == AccountKind.LIABILITY

def test_malformed_dates_rejected(parameters):
    with pytest.raises(ValidationError):
        fee_invoice_from_gross("abcd-05-01", "56", 100_000)
    with pytest.raises(ValidationError):
        build_invoice("2024-5-15", "1004", InvoiceKind.SALE, 1_000, parameters)
    with pytest.raises(ValidationError):
        build_invoice("2024-02-30", "1005", InvoiceKind.SALE, 1_000, parameters)

def test_exempt_invoice_needs_no_vat_account():
    partial = [a for a in default_chart() if a.name != AccountRole.VAT_PAYABLE.value]
    inv = build_invoice("2024-05-20", "79", InvoiceKind.SALE, 40_000, [], exempt=True)
    assert record_invoice(inv, AccountDirectory(partial)).posted

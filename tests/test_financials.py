from backoffice.accounts.directory import default_chart
from backoffice.core.schemas import InvoiceKind, VoucherEntry
from backoffice.ledger.posting import voucher_from_invoice
from backoffice.ledger.voucher import new_voucher
from backoffice.payroll.engine import calculate_payslip
from backoffice.reports.financials import FinancialReports, payroll_book, vat_summary
from backoffice.tax.invoice_tax import build_invoice

def test_trial_balance_and_reports(parameters, directory):
    sale = voucher_from_invoice(build_invoice("2024-05-12", "1", InvoiceKind.SALE, 5_000, parameters), directory)
    expense = new_voucher("2024-05-12", "Gasto", [VoucherEntry(5101, debit=2_000), VoucherEntry(1101, credit=2_000)])
    fr = FinancialReports([sale, expense], default_chart())
    tb = fr.trial_balance()
    assert not tb.empty
    assert tb["Debit"].sum() == tb["Credit"].sum()
    receivable = tb[tb["Code"] == "1101"].iloc[0]
    assert receivable["Debtor"] == 3_950
    pl = fr.profit_and_loss()
    assert pl["Revenue"] == 5_000
    assert pl["Expenses"] == 2_000
    bs = fr.balance_sheet()
    assert bs["Balanced"]

def test_empty_trial_balance():
    assert FinancialReports([], default_chart()).trial_balance().empty

def test_vat_summary(parameters):
    invoices = [
        build_invoice("2024-05-02", "1", InvoiceKind.SALE, 100_000, parameters),
        build_invoice("2024-05-09", "9", InvoiceKind.PURCHASE, 30_000, parameters),
        build_invoice("2024-05-10", "10", InvoiceKind.SALE, 8_000, parameters, exempt=True),
    ]
    s = vat_summary(invoices, "2024-05")
    assert (s["debit_vat"], s["credit_vat"], s["balance"]) == (19_000, 5_700, 13_300)
    assert s["exempt"] == 1

def test_payroll_book(employee, parameters, brackets, institutions):
    slip = calculate_payslip(employee, "2024-05", parameters, brackets, institutions)
    book = payroll_book([slip, slip], "2024-05")
    assert len(book) == 3
    total = book.iloc[-1]
    assert total["employee_id"] == "TOTAL"
    assert total["pension"] == 274_560
    assert total["net_pay"] == 2 * 967_759

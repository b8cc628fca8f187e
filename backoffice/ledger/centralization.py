"""
Centralization: one summary voucher per period for payroll or invoices.

Checking that a period has not been centralized before is the caller's job
(see ``JournalRepository.ensure_not_posted``); the description keys below are
what that check matches on.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from backoffice.accounts.directory import AccountDirectory, AccountRole
from backoffice.core.errors import ImbalanceError, NothingToCentralize
from backoffice.core.schemas import (
    WITHHOLDING_KINDS, DeductionKind, Invoice, InvoiceKind, Payslip, Voucher, VoucherEntry,
)
from backoffice.core.utils import period_end_date, validate_period
from backoffice.ledger.voucher import check_balance, new_voucher

logger = logging.getLogger(__name__)

def payroll_centralization_key(period: str) -> str:
    return f"Centralizacion Remuneraciones {period}"

def invoice_centralization_key(period: str) -> str:
    return f"Centralizacion Compras y Ventas {period}"

Line = Tuple[AccountRole, int, int]

def _entries(lines: List[Line], directory: AccountDirectory) -> List[VoucherEntry]:
    """Drop zero lines, then resolve accounts for the rest and check the balance."""
    entries = [
        VoucherEntry(directory.resolve(role), debit=debit, credit=credit)
        for role, debit, credit in lines if debit or credit
    ]
    debit_total, credit_total = check_balance(entries)
    if debit_total != credit_total:
        logger.error("centralization does not balance: debit %d credit %d", debit_total, credit_total)
        raise ImbalanceError(debit_total, credit_total)
    return entries

def centralize_payroll(
    payslips: Iterable[Payslip],
    period: str,
    directory: AccountDirectory,
    date: Optional[str] = None,
) -> Voucher:
    validate_period(period)
    slips = [p for p in payslips if p.period == period]
    if not slips:
        raise NothingToCentralize(period, "payslips")

    gross = sum(p.gross_pay for p in slips)
    net = sum(p.net_pay for p in slips)
    withholdings = sum(p.amount_for(kind) for p in slips for kind in WITHHOLDING_KINDS)
    income_tax = sum(p.amount_for(DeductionKind.INCOME_TAX) for p in slips)

    entries = _entries([
        (AccountRole.PAYROLL_EXPENSE, gross, 0),
        (AccountRole.SALARIES_PAYABLE, 0, net),
        (AccountRole.WITHHOLDINGS_PAYABLE, 0, withholdings),
        (AccountRole.INCOME_TAX_PAYABLE, 0, income_tax),
    ], directory)
    voucher = new_voucher(date or period_end_date(period), payroll_centralization_key(period), entries)
    logger.info("centralized %d payslips for %s: gross %d", len(slips), period, gross)
    return voucher

def centralize_invoices(
    invoices: Iterable[Invoice],
    period: str,
    directory: AccountDirectory,
    date: Optional[str] = None,
) -> Voucher:
    validate_period(period)
    docs = [i for i in invoices if i.date.startswith(period)]
    if not docs:
        raise NothingToCentralize(period, "invoices")

    sales = [i for i in docs if i.kind == InvoiceKind.SALE]
    purchases = [i for i in docs if i.kind == InvoiceKind.PURCHASE]
    lines: List[Line] = []
    if sales:
        lines += [
            (AccountRole.ACCOUNTS_RECEIVABLE, sum(i.total for i in sales), 0),
            (AccountRole.SALES_REVENUE, 0, sum(i.net for i in sales)),
            (AccountRole.VAT_PAYABLE, 0, sum(i.tax for i in sales)),
        ]
    if purchases:
        lines += [
            (AccountRole.EXPENSE, sum(i.net for i in purchases), 0),
            (AccountRole.VAT_RECEIVABLE, sum(i.tax for i in purchases), 0),
            (AccountRole.ACCOUNTS_PAYABLE, 0, sum(i.total for i in purchases)),
        ]
    voucher = new_voucher(date or period_end_date(period), invoice_centralization_key(period), _entries(lines, directory))
    logger.info("centralized %d sales and %d purchases for %s", len(sales), len(purchases), period)
    return voucher

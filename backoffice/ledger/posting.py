"""
Voucher synthesis from business documents (invoices, fee invoices).

Synthesis and persistence are separate steps. ``record_invoice`` returns the
invoice together with either its voucher or the reason it could not be
posted, so a caller that stores the invoice anyway must deal with the
unposted state explicitly.
"""
import logging
from typing import Iterable, List

from backoffice.accounts.directory import AccountDirectory, AccountRole
from backoffice.core.errors import AccountNotFound, ImbalanceError, ValidationError
from backoffice.core.schemas import (
    BatchResult, FeeInvoice, Invoice, InvoiceKind, InvoiceRow, InvoiceRowStatus,
    PostingOutcome, RowFailure, Voucher, VoucherEntry, VoucherType,
)
from backoffice.ledger.voucher import new_voucher

logger = logging.getLogger(__name__)

# Errors that leave the source document valid but unposted
SYNTHESIS_ERRORS = (AccountNotFound, ImbalanceError)

def invoice_description(invoice: Invoice) -> str:
    return f"{invoice.kind.value} Factura N° {invoice.number}"

def _resolved(lines, directory: AccountDirectory) -> List[VoucherEntry]:
    # zero lines need no account; an exempt invoice posts without a VAT account
    return [
        VoucherEntry(directory.resolve(role), debit=debit, credit=credit)
        for role, debit, credit in lines if debit or credit
    ]

def voucher_from_invoice(invoice: Invoice, directory: AccountDirectory) -> Voucher:
    if invoice.kind == InvoiceKind.SALE:
        lines = [
            (AccountRole.ACCOUNTS_RECEIVABLE, invoice.total, 0),
            (AccountRole.SALES_REVENUE, 0, invoice.net),
            (AccountRole.VAT_PAYABLE, 0, invoice.tax),
        ]
        voucher_type = VoucherType.INGRESO
    elif invoice.kind == InvoiceKind.PURCHASE:
        lines = [
            (AccountRole.EXPENSE, invoice.net, 0),
            (AccountRole.VAT_RECEIVABLE, invoice.tax, 0),
            (AccountRole.ACCOUNTS_PAYABLE, 0, invoice.total),
        ]
        voucher_type = VoucherType.EGRESO
    else:
        raise ValidationError("kind", invoice.kind, "unknown invoice kind")
    return new_voucher(invoice.date, invoice_description(invoice), _resolved(lines, directory), voucher_type)

def voucher_from_fee_invoice(fee_invoice: FeeInvoice, directory: AccountDirectory) -> Voucher:
    entries = _resolved([
        (AccountRole.FEES_EXPENSE, fee_invoice.gross, 0),
        (AccountRole.RETENTION_PAYABLE, 0, fee_invoice.retention),
        (AccountRole.FEES_PAYABLE, 0, fee_invoice.net),
    ], directory)
    return new_voucher(fee_invoice.date, f"Boleta de Honorarios N° {fee_invoice.number}",
                       entries, VoucherType.EGRESO)

def record_invoice(invoice: Invoice, directory: AccountDirectory) -> PostingOutcome:
    try:
        voucher = voucher_from_invoice(invoice, directory)
    except SYNTHESIS_ERRORS as e:
        logger.warning("invoice %s saved without voucher: %s", invoice.number, e)
        return PostingOutcome(primary=invoice, error=e)
    return PostingOutcome(primary=invoice, voucher=voucher)

def record_fee_invoice(fee_invoice: FeeInvoice, directory: AccountDirectory) -> PostingOutcome:
    try:
        voucher = voucher_from_fee_invoice(fee_invoice, directory)
    except SYNTHESIS_ERRORS as e:
        logger.warning("fee invoice %s saved without voucher: %s", fee_invoice.number, e)
        return PostingOutcome(primary=fee_invoice, error=e)
    return PostingOutcome(primary=fee_invoice, voucher=voucher)

def post_invoice_rows(rows: Iterable[InvoiceRow], directory: AccountDirectory) -> BatchResult:
    """Synthesize one voucher per ``ok`` row; rows already marked ``error`` are reported, not processed."""
    result: BatchResult = BatchResult()
    for row in rows:
        key = row.invoice.number if row.invoice is not None else None
        if row.status == InvoiceRowStatus.ERROR or row.invoice is None:
            result.failed.append(RowFailure(row.row_index, key, row.error or "row rejected by parser"))
            continue
        try:
            result.succeeded.append(voucher_from_invoice(row.invoice, directory))
        except (ValidationError,) + SYNTHESIS_ERRORS as e:
            logger.warning("invoice row %d (%s) not posted: %s", row.row_index, key, e)
            result.failed.append(RowFailure(row.row_index, key, str(e), e))
    logger.info("posted %d invoice rows, %d failed", len(result.succeeded), len(result.failed))
    return result

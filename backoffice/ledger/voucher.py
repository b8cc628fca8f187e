"""
Double-entry vouchers (comprobantes contables).

``new_voucher`` is the single constructor for every voucher in the package:
synthesized, centralized and reversing vouchers all pass through it, so an
unbalanced voucher can never be accepted. Accepted vouchers are never edited;
a correction is a new reversing voucher.
"""
import logging
from typing import Iterable, Optional, Tuple

from backoffice.core.errors import ImbalanceError, ValidationError
from backoffice.core.schemas import Voucher, VoucherEntry, VoucherType
from backoffice.core.utils import to_money

logger = logging.getLogger(__name__)

def check_balance(entries: Iterable[VoucherEntry]) -> Tuple[int, int]:
    """Return (debit_total, credit_total) after validating each row."""
    debit_total = credit_total = 0
    for e in entries:
        debit = to_money(e.debit, "debit")
        credit = to_money(e.credit, "credit")
        if debit < 0 or credit < 0:
            raise ValidationError("entry", e, "debit and credit must not be negative")
        if debit and credit:
            raise ValidationError("entry", e, "a row carries either a debit or a credit, not both")
        debit_total += debit
        credit_total += credit
    return debit_total, credit_total

def new_voucher(
    date: str,
    description: str,
    entries: Iterable[VoucherEntry],
    voucher_type: VoucherType = VoucherType.TRASPASO,
    reverses: Optional[str] = None,
) -> Voucher:
    rows = [
        VoucherEntry(e.account_id, to_money(e.debit, "debit"), to_money(e.credit, "credit"), e.description)
        for e in entries
    ]
    # zero-value lines are no-ops
    rows = [e for e in rows if e.debit or e.credit]
    debit_total, credit_total = check_balance(rows)
    if debit_total != credit_total or debit_total == 0:
        raise ImbalanceError(debit_total, credit_total)
    voucher = Voucher(
        date=date,
        description=description,
        entries=tuple(rows),
        voucher_type=VoucherType(voucher_type),
        reverses=reverses,
    )
    logger.debug("voucher '%s' accepted: %d lines, %d", description, len(rows), debit_total)
    return voucher

def reverse_voucher(voucher: Voucher, date: str, description: Optional[str] = None) -> Voucher:
    """Mirror image of ``voucher``: every debit becomes a credit and vice versa."""
    return new_voucher(
        date=date,
        description=description or f"Reversa: {voucher.description}",
        entries=[VoucherEntry(e.account_id, debit=e.credit, credit=e.debit, description=e.description)
                 for e in voucher.entries],
        voucher_type=voucher.voucher_type,
        reverses=voucher.description,
    )

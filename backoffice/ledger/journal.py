"""
Append-only journal on SQLAlchemy.

Vouchers arrive here already accepted by ``new_voucher``; the repository only
stores them. There is no update or delete: a correction is appended as a
reversing voucher.
"""
import logging
import numbers
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from backoffice.core.errors import AlreadyCentralized, ImbalanceError, ValidationError, VoucherNotFound
from backoffice.core.schemas import Voucher, VoucherEntry, VoucherType
from backoffice.db.models import VoucherLineRecord, VoucherRecord
from backoffice.db.session import SessionLocal
from backoffice.ledger.voucher import reverse_voucher

logger = logging.getLogger(__name__)

ACCOUNT_ID_TYPES = {"int": int, "str": str}

def _account_key(account_id) -> Tuple[str, str]:
    if isinstance(account_id, str):
        return account_id, "str"
    if isinstance(account_id, numbers.Integral) and not isinstance(account_id, bool):
        return str(int(account_id)), "int"
    raise ValidationError("account_id", account_id, "account ids must be int or str")

def _account_id(stored: str, id_type: str):
    return ACCOUNT_ID_TYPES[id_type](stored)

def _to_voucher(record: VoucherRecord) -> Voucher:
    return Voucher(
        date=record.voucher_date,
        description=record.description,
        entries=tuple(
            VoucherEntry(_account_id(l.account_id, l.account_id_type), l.debit, l.credit, l.description or "")
            for l in record.lines
        ),
        voucher_type=VoucherType(record.voucher_type),
        reverses=record.reverses,
    )

class JournalRepository:
    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory or SessionLocal

    def _session(self) -> Session:
        return self._session_factory()

    def append(self, voucher: Voucher) -> int:
        record = VoucherRecord(
            voucher_date=voucher.date,
            description=voucher.description,
            voucher_type=VoucherType(voucher.voucher_type).value,
            reverses=voucher.reverses,
        )
        for position, e in enumerate(voucher.entries):
            account_key, account_id_type = _account_key(e.account_id)
            record.lines.append(VoucherLineRecord(
                position=position, account_id=account_key, account_id_type=account_id_type,
                debit=e.debit, credit=e.credit, description=e.description,
            ))
        if not record.is_balanced():
            raise ImbalanceError(voucher.debit_total, voucher.credit_total)
        db = self._session()
        try:
            db.add(record)
            db.commit()
            voucher_id = record.id
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        logger.info("journal: voucher %d '%s' appended (%d)", voucher_id, voucher.description, voucher.debit_total)
        return voucher_id

    def find_by_description(self, description: str) -> Optional[int]:
        db = self._session()
        try:
            return db.execute(
                select(VoucherRecord.id).where(VoucherRecord.description == description).order_by(VoucherRecord.id)
            ).scalars().first()
        finally:
            db.close()

    def ensure_not_posted(self, description: str) -> None:
        existing = self.find_by_description(description)
        if existing is not None:
            raise AlreadyCentralized(description, existing)

    def append_centralization(self, voucher: Voucher) -> int:
        """Append a centralization voucher unless its period already has one."""
        self.ensure_not_posted(voucher.description)
        return self.append(voucher)

    def get(self, voucher_id: int) -> Voucher:
        db = self._session()
        try:
            record = db.get(VoucherRecord, voucher_id)
            if record is None:
                raise VoucherNotFound(voucher_id)
            return _to_voucher(record)
        finally:
            db.close()

    def reverse(self, voucher_id: int, date: str, description: Optional[str] = None) -> int:
        reversal = reverse_voucher(self.get(voucher_id), date, description)
        return self.append(reversal)

    def load_vouchers(self, period: Optional[str] = None) -> List[Voucher]:
        db = self._session()
        try:
            stmt = select(VoucherRecord).order_by(VoucherRecord.id)
            if period is not None:
                stmt = stmt.where(VoucherRecord.voucher_date.startswith(period))
            return [_to_voucher(r) for r in db.execute(stmt).scalars().all()]
        finally:
            db.close()

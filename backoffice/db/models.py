from sqlalchemy import (
    Column, String, Integer, ForeignKey, DateTime, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime
from backoffice.db.session import Base

class VoucherRecord(Base):
    __tablename__ = "vouchers"
    id = Column(Integer, primary_key=True, autoincrement=True)
    voucher_date = Column(String(10), nullable=False, index=True)  # ISO date
    description = Column(String, nullable=False, index=True)
    voucher_type = Column(String, nullable=False)  # Ingreso / Egreso / Traspaso
    reverses = Column(String, nullable=True)  # description of the reversed voucher
    created_at = Column(DateTime, default=datetime.utcnow)

    lines = relationship(
        "VoucherLineRecord", back_populates="voucher",
        order_by="VoucherLineRecord.position", cascade="all, delete-orphan",
    )

    def is_balanced(self):
        total_debit = sum(l.debit for l in self.lines)
        total_credit = sum(l.credit for l in self.lines)
        return total_debit == total_credit

class VoucherLineRecord(Base):
    __tablename__ = "voucher_lines"
    __table_args__ = (UniqueConstraint("voucher_id", "position"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    voucher_id = Column(Integer, ForeignKey("vouchers.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    account_id = Column(String, nullable=False, index=True)
    account_id_type = Column(String(3), nullable=False, default="str")  # int / str
    debit = Column(Integer, default=0, nullable=False)
    credit = Column(Integer, default=0, nullable=False)
    description = Column(Text, nullable=True)

    voucher = relationship("VoucherRecord", back_populates="lines")

"""
Typed records shared by the computation core.

Reference data (parameters, brackets, institutions, accounts) is read-only to
the core. Payslips and vouchers are results: frozen, rebuilt rather than
mutated when inputs change.
"""
from dataclasses import dataclass, field, asdict
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from backoffice.core.errors import BackofficeError, ValidationError
from backoffice.core.utils import to_decimal, to_money

T = TypeVar("T")

# --- Reference data ---

class ParameterName(str, Enum):
    UF = "UF"
    UTM = "UTM"
    TOPE_IMPONIBLE = "TopeImponibleAFP"
    IVA = "IVA"
    SUELDO_MINIMO = "SueldoMinimo"

@dataclass(frozen=True)
class PeriodParameter:
    period: str
    name: str
    value: Decimal

    def __post_init__(self):
        name = self.name.value if isinstance(self.name, ParameterName) else self.name
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "value", to_decimal(self.value, f"parameter {name}"))

@dataclass(frozen=True)
class TaxBracket:
    period: str
    from_units: Decimal
    to_units: Optional[Decimal]
    rate: Decimal
    rebate_units: Decimal = Decimal("0")

    def __post_init__(self):
        object.__setattr__(self, "from_units", to_decimal(self.from_units, "from_units"))
        if self.to_units is not None:
            object.__setattr__(self, "to_units", to_decimal(self.to_units, "to_units"))
        object.__setattr__(self, "rate", to_decimal(self.rate, "rate"))
        object.__setattr__(self, "rebate_units", to_decimal(self.rebate_units, "rebate_units"))

    def matches(self, base: Decimal) -> bool:
        return base > self.from_units and (self.to_units is None or base <= self.to_units)

class InstitutionKind(str, Enum):
    PENSION_FUND = "AFP"
    HEALTH_PROVIDER = "Isapre"
    PUBLIC_HEALTH = "Fonasa"
    OTHER = "Otro"

@dataclass(frozen=True)
class Institution:
    id: Any
    name: str
    kind: InstitutionKind
    contribution_rate_percent: Optional[Decimal] = None

    def __post_init__(self):
        if self.contribution_rate_percent is not None:
            object.__setattr__(
                self, "contribution_rate_percent",
                to_decimal(self.contribution_rate_percent, "contribution_rate_percent"),
            )
        elif self.kind == InstitutionKind.PENSION_FUND:
            raise ValidationError("contribution_rate_percent", None, f"pension fund {self.name!r} requires a rate")

@dataclass(frozen=True)
class Employee:
    id: Any
    tax_id_raw: str
    base_salary: int
    pension_fund_id: Any
    health_provider_id: Any
    meal_allowance: int = 0
    transport_allowance: int = 0
    health_plan_uf: Optional[Decimal] = None
    name: str = ""

    def __post_init__(self):
        for attr in ("base_salary", "meal_allowance", "transport_allowance"):
            amount = to_money(getattr(self, attr) or 0, attr)
            if amount < 0:
                raise ValidationError(attr, amount, "must not be negative")
            object.__setattr__(self, attr, amount)
        if self.health_plan_uf is not None:
            object.__setattr__(self, "health_plan_uf", to_decimal(self.health_plan_uf, "health_plan_uf"))

# --- Payroll results ---

class DeductionKind(str, Enum):
    PENSION = "pension"
    HEALTH = "health"
    UNEMPLOYMENT = "unemployment"
    INCOME_TAX = "income_tax"

WITHHOLDING_KINDS = (DeductionKind.PENSION, DeductionKind.HEALTH, DeductionKind.UNEMPLOYMENT)

@dataclass(frozen=True)
class Deduction:
    label: str
    amount: int
    kind: DeductionKind

@dataclass(frozen=True)
class Payslip:
    employee_id: Any
    period: str
    gross_pay: int
    taxable_income: int
    income_tax: int
    deductions: Tuple[Deduction, ...]
    net_pay: int

    @property
    def total_deductions(self) -> int:
        return sum(d.amount for d in self.deductions)

    def amount_for(self, kind: DeductionKind) -> int:
        return sum(d.amount for d in self.deductions if d.kind == kind)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

# --- Ledger ---

class AccountKind(str, Enum):
    ASSET = "Activo"
    LIABILITY = "Pasivo"
    EQUITY = "Patrimonio"
    INCOME = "Resultado Ganancia"
    EXPENSE = "Resultado Perdida"

@dataclass(frozen=True)
class LedgerAccount:
    id: Any
    code: str
    name: str
    kind: AccountKind

class VoucherType(str, Enum):
    INGRESO = "Ingreso"
    EGRESO = "Egreso"
    TRASPASO = "Traspaso"

@dataclass(frozen=True)
class VoucherEntry:
    account_id: Any
    debit: int = 0
    credit: int = 0
    description: str = ""

@dataclass(frozen=True)
class Voucher:
    """Build through ``backoffice.ledger.voucher.new_voucher`` only."""
    date: str
    description: str
    entries: Tuple[VoucherEntry, ...]
    voucher_type: VoucherType = VoucherType.TRASPASO
    reverses: Optional[str] = None

    @property
    def debit_total(self) -> int:
        return sum(e.debit for e in self.entries)

    @property
    def credit_total(self) -> int:
        return sum(e.credit for e in self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

# --- Invoices ---

class InvoiceKind(str, Enum):
    SALE = "Venta"
    PURCHASE = "Compra"

@dataclass(frozen=True)
class Invoice:
    date: str
    number: str
    kind: InvoiceKind
    net: int
    tax: int
    total: int
    subject_rut: str = ""
    exempt: bool = False

    def __post_init__(self):
        for attr in ("net", "tax", "total"):
            amount = to_money(getattr(self, attr), attr)
            if amount < 0:
                raise ValidationError(attr, amount, "must not be negative")
            object.__setattr__(self, attr, amount)
        if self.exempt and self.tax != 0:
            raise ValidationError("tax", self.tax, "exempt invoice cannot carry tax")
        if self.net + self.tax != self.total:
            raise ValidationError("total", self.total, f"net {self.net} + tax {self.tax} does not match total")

@dataclass(frozen=True)
class FeeInvoice:
    date: str
    number: str
    gross: int
    retention: int
    net: int
    subject_rut: str = ""

    def __post_init__(self):
        for attr in ("gross", "retention", "net"):
            amount = to_money(getattr(self, attr), attr)
            if amount < 0:
                raise ValidationError(attr, amount, "must not be negative")
            object.__setattr__(self, attr, amount)
        if self.retention + self.net != self.gross:
            raise ValidationError("gross", self.gross, f"retention {self.retention} + net {self.net} does not match gross")

# --- Batch rows and results ---

class EmployeeRowStatus(str, Enum):
    NEW = "new"
    EXISTS = "exists"
    ERROR = "error"

class InvoiceRowStatus(str, Enum):
    OK = "ok"
    ERROR = "error"

@dataclass(frozen=True)
class EmployeeRow:
    row_index: int
    status: EmployeeRowStatus
    employee: Optional[Employee] = None
    error: Optional[str] = None

@dataclass(frozen=True)
class InvoiceRow:
    row_index: int
    status: InvoiceRowStatus
    invoice: Optional[Invoice] = None
    error: Optional[str] = None

@dataclass(frozen=True)
class RowFailure:
    row_index: int
    key: Any
    reason: str
    error: Optional[BackofficeError] = None

    @property
    def code(self) -> str:
        return self.error.code if self.error is not None else "ROW_REJECTED"

@dataclass
class BatchResult(Generic[T]):
    """Partial-success result: every input row ends up in exactly one list."""
    succeeded: List[T] = field(default_factory=list)
    failed: List[RowFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": len(self.succeeded),
            "failed": [
                {"row_index": f.row_index, "key": f.key, "code": f.code, "reason": f.reason}
                for f in self.failed
            ],
        }

@dataclass(frozen=True)
class PostingOutcome(Generic[T]):
    """The business document is valid even when its voucher could not be synthesized."""
    primary: T
    voucher: Optional[Voucher] = None
    error: Optional[BackofficeError] = None

    @property
    def posted(self) -> bool:
        return self.voucher is not None

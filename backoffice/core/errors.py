"""
Typed exceptions for the accounting and payroll core.

Every exception carries a ``code`` class attribute and the offending
identifiers as attributes, so callers decide between skipping a record and
aborting a whole operation without parsing messages.

    BackofficeError
    +-- ValidationError
    +-- ReferenceDataError
    |   +-- MissingParameter
    |   +-- InstitutionNotFound
    |   +-- AccountNotFound
    +-- LedgerError
        +-- ImbalanceError
        +-- NothingToCentralize
        +-- AlreadyCentralized
        +-- VoucherNotFound
"""
from typing import Any, Optional

class BackofficeError(Exception):
    code: str = "BACKOFFICE_ERROR"

    def to_dict(self) -> dict:
        data = {"code": self.code, "message": str(self)}
        data.update({k: v for k, v in vars(self).items() if not k.startswith("_")})
        return data

class ValidationError(BackofficeError):
    """Malformed input for a single record; the caller may skip it and continue."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")

class ReferenceDataError(BackofficeError):
    code: str = "REFERENCE_DATA_ERROR"

class MissingParameter(ReferenceDataError):
    code: str = "MISSING_PARAMETER"

    def __init__(self, name: str, period: str):
        self.name = name
        self.period = period
        super().__init__(f"Parameter {name} is not defined for period {period}")

class InstitutionNotFound(ReferenceDataError):
    code: str = "INSTITUTION_NOT_FOUND"

    def __init__(self, institution_id: Any, role: str, employee_id: Any = None):
        self.institution_id = institution_id
        self.role = role
        self.employee_id = employee_id
        msg = f"{role} institution {institution_id!r} not found"
        if employee_id is not None:
            msg += f" for employee {employee_id!r}"
        super().__init__(msg)

class AccountNotFound(ReferenceDataError):
    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Account {name!r} not found in chart of accounts")

class LedgerError(BackofficeError):
    code: str = "LEDGER_ERROR"

class ImbalanceError(LedgerError):
    """Debits and credits differ, or both are zero. Never auto-corrected."""

    code: str = "IMBALANCE"

    def __init__(self, debit_total: int, credit_total: int):
        self.debit_total = debit_total
        self.credit_total = credit_total
        self.delta = debit_total - credit_total
        if self.delta == 0:
            super().__init__("Voucher has no amounts (debits and credits are both zero)")
        else:
            super().__init__(
                f"Voucher does not balance: debit {debit_total} != credit {credit_total} (delta {self.delta})"
            )

class NothingToCentralize(LedgerError):
    code: str = "NOTHING_TO_CENTRALIZE"

    def __init__(self, period: str, what: str = "payslips"):
        self.period = period
        self.what = what
        super().__init__(f"Nothing to centralize: no {what} for period {period}")

class AlreadyCentralized(LedgerError):
    code: str = "ALREADY_CENTRALIZED"

    def __init__(self, description: str, voucher_id: Optional[int] = None):
        self.description = description
        self.voucher_id = voucher_id
        super().__init__(f"A voucher '{description}' is already posted (id {voucher_id})")

class VoucherNotFound(LedgerError):
    code: str = "VOUCHER_NOT_FOUND"

    def __init__(self, voucher_id: Any):
        self.voucher_id = voucher_id
        super().__init__(f"Voucher {voucher_id!r} not found")

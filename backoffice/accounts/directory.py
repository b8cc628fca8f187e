"""
Chart of accounts lookup for voucher synthesis.

Synthesized vouchers refer to accounts by role (``AccountRole``). A role maps
to a chart name, and the chart name is matched exactly, ignoring case, against
the company's accounts. ``AccountRole`` is the only place the role names live.
"""
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from backoffice.core.config import settings
from backoffice.core.errors import AccountNotFound, ValidationError
from backoffice.core.schemas import AccountKind, LedgerAccount

logger = logging.getLogger(__name__)

class AccountRole(str, Enum):
    ACCOUNTS_RECEIVABLE = "Accounts-Receivable"
    ACCOUNTS_PAYABLE = "Accounts-Payable"
    SALES_REVENUE = "Sales-Revenue"
    VAT_PAYABLE = "VAT-Payable"
    VAT_RECEIVABLE = "VAT-Receivable"
    EXPENSE = "Expense"
    FEES_EXPENSE = "Fees-Expense"
    FEES_PAYABLE = "Fees-Payable"
    RETENTION_PAYABLE = "Retention-Payable"
    PAYROLL_EXPENSE = "Payroll-Expense"
    SALARIES_PAYABLE = "Salaries-Payable"
    WITHHOLDINGS_PAYABLE = "Withholdings-Payable"
    INCOME_TAX_PAYABLE = "Income-Tax-Payable"

INVOICE_ROLES = (
    AccountRole.ACCOUNTS_RECEIVABLE, AccountRole.SALES_REVENUE, AccountRole.VAT_PAYABLE,
    AccountRole.EXPENSE, AccountRole.VAT_RECEIVABLE, AccountRole.ACCOUNTS_PAYABLE,
)
FEE_INVOICE_ROLES = (AccountRole.FEES_EXPENSE, AccountRole.RETENTION_PAYABLE, AccountRole.FEES_PAYABLE)
PAYROLL_ROLES = (
    AccountRole.PAYROLL_EXPENSE, AccountRole.SALARIES_PAYABLE,
    AccountRole.WITHHOLDINGS_PAYABLE, AccountRole.INCOME_TAX_PAYABLE,
)

# Basic chart of accounts covering every role
DEFAULT_CHART = {
    "1101": AccountRole.ACCOUNTS_RECEIVABLE,
    "1105": AccountRole.VAT_RECEIVABLE,
    "2101": AccountRole.ACCOUNTS_PAYABLE,
    "2102": AccountRole.FEES_PAYABLE,
    "2105": AccountRole.VAT_PAYABLE,
    "2106": AccountRole.RETENTION_PAYABLE,
    "2107": AccountRole.INCOME_TAX_PAYABLE,
    "2110": AccountRole.SALARIES_PAYABLE,
    "2111": AccountRole.WITHHOLDINGS_PAYABLE,
    "4101": AccountRole.SALES_REVENUE,
    "5101": AccountRole.EXPENSE,
    "5102": AccountRole.FEES_EXPENSE,
    "5201": AccountRole.PAYROLL_EXPENSE,
}

def default_chart() -> List[LedgerAccount]:
    return [
        LedgerAccount(id=int(code), code=code, name=role.value, kind=account_kind_from_code(code))
        for code, role in DEFAULT_CHART.items()
    ]

def account_kind_from_code(account_code: str) -> AccountKind:
    """Chilean chart convention: first digit of the code gives the account class."""
    kinds = {
        "1": AccountKind.ASSET,
        "2": AccountKind.LIABILITY,
        "3": AccountKind.EQUITY,
        "4": AccountKind.INCOME,
        "5": AccountKind.EXPENSE,
    }
    code = str(account_code).strip()
    if not code or code[0] not in kinds:
        raise ValidationError("account_code", account_code, "cannot infer account kind")
    return kinds[code[0]]

def accounts_from_frame(df: pd.DataFrame) -> List[LedgerAccount]:
    """Build accounts from a table with ``id, code, name`` and optional ``kind`` columns."""
    missing = {"id", "code", "name"} - set(df.columns)
    if missing:
        raise ValidationError("columns", sorted(missing), "required chart of accounts columns missing")
    accounts = []
    for row in df.to_dict("records"):
        code = str(row["code"]).strip()
        kind = row.get("kind")
        if kind is None or pd.isna(kind) or str(kind).strip() == "":
            account_kind = account_kind_from_code(code)
        else:
            account_kind = AccountKind(kind)
        accounts.append(LedgerAccount(id=row["id"], code=code, name=str(row["name"]), kind=account_kind))
    return accounts

class AccountDirectory:
    """Case-insensitive, exact account-name index built once per company."""

    def __init__(self, accounts: Iterable[LedgerAccount], names: Optional[Mapping[str, str]] = None):
        self._by_name: Dict[str, LedgerAccount] = {}
        for account in accounts:
            key = account.name.casefold()
            if key in self._by_name:
                raise ValidationError("account name", account.name, "duplicated in chart of accounts (case-insensitive)")
            self._by_name[key] = account
        overrides = dict(settings.ACCOUNT_NAMES)
        overrides.update({_role_value(k): v for k, v in (names or {}).items()})
        self._names = overrides

    @classmethod
    def build(cls, accounts: Iterable[LedgerAccount], names: Optional[Mapping[str, str]] = None) -> "AccountDirectory":
        return cls(accounts, names)

    def __len__(self) -> int:
        return len(self._by_name)

    def chart_name(self, role: Union[AccountRole, str]) -> str:
        """Chart name a role resolves to (the role's own name unless overridden)."""
        value = _role_value(role)
        return self._names.get(value, value)

    def lookup(self, name: str) -> LedgerAccount:
        account = self._by_name.get(name.casefold())
        if account is None:
            raise AccountNotFound(name)
        return account

    def resolve(self, role: Union[AccountRole, str]) -> Any:
        """Account id for a role (or a plain chart name)."""
        return self.lookup(self.chart_name(role)).id

    def require(self, *roles: Union[AccountRole, str]) -> Dict[str, Any]:
        """Resolve several roles at once; fails on the first missing one."""
        return {_role_value(r): self.resolve(r) for r in roles}

    def missing(self, *roles: Union[AccountRole, str]) -> List[str]:
        """Chart names among ``roles`` that do not resolve."""
        names = [self.chart_name(r) for r in roles]
        absent = [n for n in names if n.casefold() not in self._by_name]
        if absent:
            logger.info("chart of accounts lacks %s", ", ".join(absent))
        return absent

def _role_value(role: Union[AccountRole, str]) -> str:
    return role.value if isinstance(role, AccountRole) else role

from typing import Dict, Any, Iterable, List, Optional
import pandas as pd

from backoffice.core.schemas import (
    AccountKind, DeductionKind, Invoice, InvoiceKind, LedgerAccount, Payslip, Voucher,
)
from backoffice.core.utils import validate_period

TB_COLUMNS = ["Code", "Account", "Kind", "Debit", "Credit", "Debtor", "Creditor"]

class FinancialReports:
    """Trial balance and statements over a set of accepted vouchers."""

    def __init__(self, vouchers: Iterable[Voucher], accounts: Iterable[LedgerAccount]):
        self.vouchers = list(vouchers)
        self.accounts = {a.id: a for a in accounts}

    def load_journal_df(self) -> pd.DataFrame:
        rows = [
            {"date": v.date, "description": v.description, "account_id": e.account_id,
             "debit": e.debit, "credit": e.credit}
            for v in self.vouchers for e in v.entries
        ]
        if not rows: return pd.DataFrame(columns=["date", "description", "account_id", "debit", "credit"])
        return pd.DataFrame(rows)

    def trial_balance(self) -> pd.DataFrame:
        """Balance de comprobacion: sums and balances per account, ordered by code."""
        df = self.load_journal_df()
        if df.empty: return pd.DataFrame(columns=TB_COLUMNS)
        sums = df.groupby("account_id", sort=False)[["debit", "credit"]].sum()
        rows = []
        for account_id, vals in sums.iterrows():
            account = self.accounts.get(account_id)
            debit, credit = int(vals["debit"]), int(vals["credit"])
            rows.append({
                "Code": account.code if account else str(account_id),
                "Account": account.name if account else "Unknown",
                "Kind": account.kind.value if account else None,
                "Debit": debit,
                "Credit": credit,
                "Debtor": max(debit - credit, 0),
                "Creditor": max(credit - debit, 0),
            })
        return pd.DataFrame(rows, columns=TB_COLUMNS).sort_values("Code").reset_index(drop=True)

    def _net(self, kind: AccountKind, credit_side: bool) -> int:
        tb = self.trial_balance()
        part = tb[tb["Kind"] == kind.value]
        net = part["Credit"].sum() - part["Debit"].sum()
        return int(net if credit_side else -net)

    def balance_sheet(self) -> Dict[str, Any]:
        assets = self._net(AccountKind.ASSET, credit_side=False)
        liabs = self._net(AccountKind.LIABILITY, credit_side=True)
        equity = self._net(AccountKind.EQUITY, credit_side=True)
        result = self.profit_and_loss()["NetIncome"]
        return {"Assets": assets, "Liabilities": liabs, "Equity": equity, "Result": result,
                "Balanced": assets == liabs + equity + result}

    def profit_and_loss(self) -> Dict[str, int]:
        revenue = self._net(AccountKind.INCOME, credit_side=True)
        expenses = self._net(AccountKind.EXPENSE, credit_side=False)
        return {"Revenue": revenue, "Expenses": expenses, "NetIncome": revenue - expenses}

def vat_summary(invoices: Iterable[Invoice], period: str) -> Dict[str, int]:
    """Monthly IVA position: debito fiscal (sales) minus credito fiscal (purchases)."""
    validate_period(period)
    docs = [i for i in invoices if i.date.startswith(period)]
    debit_vat = sum(i.tax for i in docs if i.kind == InvoiceKind.SALE)
    credit_vat = sum(i.tax for i in docs if i.kind == InvoiceKind.PURCHASE)
    return {
        "period": period,
        "sales": sum(1 for i in docs if i.kind == InvoiceKind.SALE),
        "purchases": sum(1 for i in docs if i.kind == InvoiceKind.PURCHASE),
        "exempt": sum(1 for i in docs if i.exempt),
        "debit_vat": debit_vat,
        "credit_vat": credit_vat,
        "balance": debit_vat - credit_vat,
    }

BOOK_COLUMNS = ["employee_id", "period", "gross_pay", "taxable_income"] + \
    [k.value for k in DeductionKind] + ["total_deductions", "net_pay"]

def payroll_book(payslips: Iterable[Payslip], period: Optional[str] = None) -> pd.DataFrame:
    """Libro de remuneraciones: one row per payslip plus a TOTAL row."""
    rows: List[Dict[str, Any]] = []
    for p in payslips:
        if period is not None and p.period != period:
            continue
        row = {"employee_id": p.employee_id, "period": p.period,
               "gross_pay": p.gross_pay, "taxable_income": p.taxable_income}
        for kind in DeductionKind:
            row[kind.value] = p.amount_for(kind)
        row["total_deductions"] = p.total_deductions
        row["net_pay"] = p.net_pay
        rows.append(row)
    book = pd.DataFrame(rows, columns=BOOK_COLUMNS)
    if book.empty:
        return book
    totals = book[BOOK_COLUMNS[2:]].sum().astype(int).to_dict()
    totals.update({"employee_id": "TOTAL", "period": period or ""})
    return pd.concat([book, pd.DataFrame([totals], columns=BOOK_COLUMNS)], ignore_index=True)

"""
Batch payroll: a payslip per employee, partial success per row.

A bad employee (missing institution or parameter, invalid RUT) never aborts the
run; it is reported in ``BatchResult.failed`` with the typed error, and every
other employee still gets a payslip.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from backoffice.accounts.directory import AccountDirectory
from backoffice.core.errors import ReferenceDataError, ValidationError
from backoffice.core.schemas import (
    BatchResult, DeductionKind, Employee, EmployeeRow, EmployeeRowStatus, Institution,
    Payslip, PeriodParameter, RowFailure, TaxBracket, Voucher,
)
from backoffice.core.utils import validate_period
from backoffice.identity.rut import validate_rut
from backoffice.ledger.centralization import centralize_payroll
from backoffice.payroll.engine import PayrollEngine, StatutoryRates

logger = logging.getLogger(__name__)

ROW_ERRORS = (ValidationError, ReferenceDataError)

@dataclass
class EmployeeImport:
    """Outcome of processing Previred-style employee rows."""
    employees_added: List[Employee] = field(default_factory=list)
    payslips: BatchResult = field(default_factory=BatchResult)

class PayrollBulkProcessor:
    """Payroll runs over a fixed set of reference tables."""

    def __init__(
        self,
        parameters: Iterable[PeriodParameter],
        brackets: Iterable[TaxBracket],
        institutions: Iterable[Institution],
        rates: Optional[StatutoryRates] = None,
    ):
        self.parameters = list(parameters)
        self.brackets = list(brackets)
        self.institutions = list(institutions)
        self.engine = PayrollEngine(rates)

    def run_payroll(self, employees: Iterable[Employee], period: str) -> BatchResult:
        validate_period(period)
        result: BatchResult = BatchResult()
        for idx, employee in enumerate(employees):
            self._calculate_into(result, idx, employee, period)
        logger.info("payroll %s: %d payslips, %d failed", period, len(result.succeeded), len(result.failed))
        return result

    def process_employee_rows(self, rows: Iterable[EmployeeRow], period: str) -> EmployeeImport:
        """Rows marked ``error`` by the parser are reported and skipped; ``new`` rows are also returned as employees to add."""
        validate_period(period)
        outcome = EmployeeImport()
        for row in rows:
            employee = row.employee
            key = employee.tax_id_raw if employee is not None else None
            if row.status == EmployeeRowStatus.ERROR or employee is None:
                outcome.payslips.failed.append(RowFailure(row.row_index, key, row.error or "row rejected by parser"))
                continue
            if not validate_rut(employee.tax_id_raw):
                err = ValidationError("rut", employee.tax_id_raw, "invalid check digit or format")
                logger.warning("employee row %d skipped: %s", row.row_index, err)
                outcome.payslips.failed.append(RowFailure(row.row_index, key, str(err), err))
                continue
            if self._calculate_into(outcome.payslips, row.row_index, employee, period) and \
                    row.status == EmployeeRowStatus.NEW:
                outcome.employees_added.append(employee)
        logger.info(
            "employee import %s: %d new, %d payslips, %d failed", period,
            len(outcome.employees_added), len(outcome.payslips.succeeded), len(outcome.payslips.failed),
        )
        return outcome

    def _calculate_into(self, result: BatchResult, row_index: int, employee: Employee, period: str) -> bool:
        try:
            slip = self.engine.calculate_payslip(employee, period, self.parameters, self.brackets, self.institutions)
        except ROW_ERRORS as e:
            logger.warning("payslip for employee %s not computed: %s", employee.id, e)
            result.failed.append(RowFailure(row_index, employee.id, str(e), e))
            return False
        result.succeeded.append(slip)
        return True

    def centralize(self, payslips: Iterable[Payslip], period: str, directory: AccountDirectory,
                   date: Optional[str] = None) -> Voucher:
        return centralize_payroll(payslips, period, directory, date)

def payroll_summary(payslips: Iterable[Payslip], period: Optional[str] = None) -> Dict[str, Any]:
    slips = [p for p in payslips if period is None or p.period == period]
    if not slips:
        return {"period": period, "total_employees": 0}
    totals = {
        "gross": sum(p.gross_pay for p in slips),
        "taxable": sum(p.taxable_income for p in slips),
        "pension": sum(p.amount_for(DeductionKind.PENSION) for p in slips),
        "health": sum(p.amount_for(DeductionKind.HEALTH) for p in slips),
        "unemployment": sum(p.amount_for(DeductionKind.UNEMPLOYMENT) for p in slips),
        "income_tax": sum(p.income_tax for p in slips),
        "deductions": sum(p.total_deductions for p in slips),
        "net": sum(p.net_pay for p in slips),
    }
    return {
        "period": period,
        "total_employees": len(slips),
        "totals": totals,
        "averages": {
            "gross": totals["gross"] // len(slips),
            "net": totals["net"] // len(slips),
        },
    }

def run_payroll(
    employees: Iterable[Employee],
    period: str,
    parameters: Iterable[PeriodParameter],
    brackets: Iterable[TaxBracket],
    institutions: Iterable[Institution],
    rates: Optional[StatutoryRates] = None,
) -> BatchResult:
    return PayrollBulkProcessor(parameters, brackets, institutions, rates).run_payroll(employees, period)

def process_employee_rows(
    rows: Iterable[EmployeeRow],
    period: str,
    parameters: Iterable[PeriodParameter],
    brackets: Iterable[TaxBracket],
    institutions: Iterable[Institution],
    rates: Optional[StatutoryRates] = None,
) -> EmployeeImport:
    return PayrollBulkProcessor(parameters, brackets, institutions, rates).process_employee_rows(rows, period)

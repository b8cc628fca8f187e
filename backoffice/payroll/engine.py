"""
Payslip computation (liquidacion de sueldo).

Every monetary intermediate is rounded half-up to whole pesos as soon as it is
computed. The engine holds no state besides its statutory rates.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from backoffice.core.config import settings
from backoffice.core.errors import InstitutionNotFound
from backoffice.core.schemas import (
    Deduction, DeductionKind, Employee, Institution, InstitutionKind,
    ParameterName, Payslip, PeriodParameter, TaxBracket,
)
from backoffice.core.utils import round_money
from backoffice.tax.brackets import select_bracket
from backoffice.tax.parameters import resolve_payroll_parameters

logger = logging.getLogger(__name__)

DEDUCTION_LABELS = {
    DeductionKind.PENSION: "Cotizacion AFP",
    DeductionKind.HEALTH: "Cotizacion Salud",
    DeductionKind.UNEMPLOYMENT: "Seguro de Cesantia",
    DeductionKind.INCOME_TAX: "Impuesto Unico",
}

@dataclass(frozen=True)
class StatutoryRates:
    pension_base_percent: Decimal
    health_rate: Decimal
    unemployment_rate: Decimal

    @classmethod
    def from_settings(cls) -> "StatutoryRates":
        return cls(
            pension_base_percent=settings.PENSION_BASE_RATE_PERCENT,
            health_rate=settings.HEALTH_RATE,
            unemployment_rate=settings.UNEMPLOYMENT_RATE,
        )

def find_institution(
    institutions: Iterable[Institution],
    institution_id: Any,
    role: str,
    kinds: tuple,
    employee_id: Any = None,
) -> Institution:
    for inst in institutions:
        if inst.id == institution_id and inst.kind in kinds:
            return inst
    raise InstitutionNotFound(institution_id, role, employee_id)

class PayrollEngine:
    def __init__(self, rates: Optional[StatutoryRates] = None):
        self.rates = rates or StatutoryRates.from_settings()

    def compute_pension(self, taxable_base: int, fund: Institution) -> int:
        rate = self.rates.pension_base_percent + fund.contribution_rate_percent
        return round_money(taxable_base * rate / 100)

    def compute_health(
        self,
        taxable_base: int,
        provider: Institution,
        plan_uf: Optional[Decimal] = None,
        uf_value: Optional[Decimal] = None,
    ) -> int:
        """Legal 7%, or the pacted Isapre plan when it is the smaller amount.

        The pacted path applies only to private providers with a plan in UF;
        Fonasa and providers without a plan always pay the legal amount.
        """
        legal = round_money(taxable_base * self.rates.health_rate)
        if provider.kind == InstitutionKind.HEALTH_PROVIDER and plan_uf and plan_uf > 0:
            pacted = round_money(plan_uf * uf_value)
            return min(pacted, legal)
        return legal

    def compute_unemployment(self, taxable_base: int) -> int:
        return round_money(taxable_base * self.rates.unemployment_rate)

    def compute_income_tax(
        self,
        income_tax_base: int,
        utm_value: Decimal,
        brackets: Iterable[TaxBracket],
        period: str,
    ) -> int:
        if income_tax_base <= 0:
            return 0
        base_units = Decimal(income_tax_base) / utm_value
        bracket = select_bracket(brackets, period, base_units)
        if bracket is None:
            return 0
        tax = (base_units * bracket.rate - bracket.rebate_units) * utm_value
        return round_money(max(Decimal(0), tax))

    def calculate_payslip(
        self,
        employee: Employee,
        period: str,
        parameters: Iterable[PeriodParameter],
        brackets: Iterable[TaxBracket],
        institutions: Iterable[Institution],
    ) -> Payslip:
        institutions = list(institutions)
        values = resolve_payroll_parameters(parameters, period)
        uf = values[ParameterName.UF.value]
        utm = values[ParameterName.UTM.value]
        ceiling = round_money(values[ParameterName.TOPE_IMPONIBLE.value])

        fund = find_institution(institutions, employee.pension_fund_id, "pension fund",
                                (InstitutionKind.PENSION_FUND,), employee.id)
        provider = find_institution(institutions, employee.health_provider_id, "health provider",
                                    (InstitutionKind.HEALTH_PROVIDER, InstitutionKind.PUBLIC_HEALTH,
                                     InstitutionKind.OTHER), employee.id)

        taxable_base = min(employee.base_salary, ceiling)
        pension = self.compute_pension(taxable_base, fund)
        health = self.compute_health(taxable_base, provider, employee.health_plan_uf, uf)
        unemployment = self.compute_unemployment(taxable_base)

        income_tax_base = employee.base_salary - (pension + health + unemployment)
        income_tax = self.compute_income_tax(income_tax_base, utm, brackets, period)

        amounts = [
            (DeductionKind.PENSION, pension),
            (DeductionKind.HEALTH, health),
            (DeductionKind.UNEMPLOYMENT, unemployment),
        ]
        if income_tax > 0:
            amounts.append((DeductionKind.INCOME_TAX, income_tax))
        deductions = tuple(Deduction(DEDUCTION_LABELS[kind], amount, kind) for kind, amount in amounts)

        gross_pay = employee.base_salary + employee.meal_allowance + employee.transport_allowance
        net_pay = gross_pay - sum(d.amount for d in deductions)
        logger.debug("payslip %s %s: gross %d net %d tax %d", employee.id, period, gross_pay, net_pay, income_tax)
        return Payslip(
            employee_id=employee.id,
            period=period,
            gross_pay=gross_pay,
            taxable_income=employee.base_salary,
            income_tax=income_tax,
            deductions=deductions,
            net_pay=net_pay,
        )

    def payroll_breakdown(self, payslip: Payslip) -> Dict[str, int]:
        breakdown = {"Gross": payslip.gross_pay, "Taxable": payslip.taxable_income}
        for d in payslip.deductions:
            breakdown[d.label] = d.amount
        breakdown["Net"] = payslip.net_pay
        return breakdown

def calculate_payslip(
    employee: Employee,
    period: str,
    parameters: Iterable[PeriodParameter],
    brackets: Iterable[TaxBracket],
    institutions: Iterable[Institution],
    rates: Optional[StatutoryRates] = None,
) -> Payslip:
    return PayrollEngine(rates).calculate_payslip(employee, period, parameters, brackets, institutions)

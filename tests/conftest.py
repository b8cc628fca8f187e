from decimal import Decimal

import pytest

from backoffice.accounts.directory import AccountDirectory, default_chart
from backoffice.core.schemas import (
    Employee, Institution, InstitutionKind, ParameterName, PeriodParameter, TaxBracket,
)

PERIOD = "2024-05"

# Impuesto Unico table in UTM (monthly, 2024)
BRACKETS = [
    ("0", "13.5", "0", "0"),
    ("13.5", "30", "0.04", "0.54"),
    ("30", "50", "0.08", "1.74"),
    ("50", "70", "0.135", "4.49"),
    ("70", "90", "0.23", "11.14"),
    ("90", "120", "0.304", "17.80"),
    ("120", "310", "0.35", "23.32"),
    ("310", None, "0.40", "38.82"),
]

@pytest.fixture
def parameters():
    return [
        PeriodParameter(PERIOD, ParameterName.UF, "37000"),
        PeriodParameter(PERIOD, ParameterName.UTM, "65000"),
        PeriodParameter(PERIOD, ParameterName.TOPE_IMPONIBLE, "3176292"),
        PeriodParameter(PERIOD, ParameterName.IVA, "0.19"),
    ]

@pytest.fixture
def brackets():
    return [TaxBracket(PERIOD, lo, hi, rate, rebate) for lo, hi, rate, rebate in BRACKETS]

@pytest.fixture
def institutions():
    return [
        Institution(1, "AFP Modelo", InstitutionKind.PENSION_FUND, Decimal("1.44")),
        Institution(2, "Fonasa", InstitutionKind.PUBLIC_HEALTH),
        Institution(3, "Isapre Colmena", InstitutionKind.HEALTH_PROVIDER),
    ]

@pytest.fixture
def employee():
    return Employee(id=10, tax_id_raw="12.345.678-5", base_salary=1_200_000,
                    pension_fund_id=1, health_provider_id=2, name="Ana Rojas")

@pytest.fixture
def directory():
    return AccountDirectory(default_chart())

from decimal import Decimal

import pytest

from backoffice.core.errors import MissingParameter, ValidationError
from backoffice.core.schemas import ParameterName, PeriodParameter
from backoffice.tax.parameters import PAYROLL_PARAMETERS, resolve_parameters, resolve_payroll_parameters

def test_resolves_only_requested_period(parameters):
    other = PeriodParameter("2024-04", ParameterName.UF, "36900")
    values = resolve_parameters(parameters + [other], "2024-05", PAYROLL_PARAMETERS)
    assert values["UF"] == Decimal("37000")
    assert values["TopeImponibleAFP"] == Decimal("3176292")

def test_missing_parameter_names_it():
    params = [PeriodParameter("2024-05", "UF", "37000")]
    with pytest.raises(MissingParameter) as exc:
        resolve_parameters(params, "2024-05", ["UF", "UTM"])
    assert exc.value.name == "UTM"
    assert exc.value.period == "2024-05"
    assert exc.value.code == "MISSING_PARAMETER"

def test_other_period_does_not_count(parameters):
    with pytest.raises(MissingParameter):
        resolve_parameters(parameters, "2024-06", PAYROLL_PARAMETERS)

def test_first_missing_in_required_order():
    with pytest.raises(MissingParameter) as exc:
        resolve_parameters([], "2024-05", [ParameterName.UTM, ParameterName.UF])
    assert exc.value.name == "UTM"

def test_duplicate_parameter_rejected():
    params = [PeriodParameter("2024-05", "UF", "37000"), PeriodParameter("2024-05", "UF", "37100")]
    with pytest.raises(ValidationError):
        resolve_parameters(params, "2024-05", ["UF"])

def test_float_values_keep_printed_digits():
    p = PeriodParameter("2024-05", "IVA", 0.19)
    assert p.value == Decimal("0.19")

def test_payroll_parameters_must_be_positive(parameters):
    params = [p for p in parameters if p.name != "UTM"] + [PeriodParameter("2024-05", "UTM", "0")]
    with pytest.raises(ValidationError) as exc:
        resolve_payroll_parameters(params, "2024-05")
    assert exc.value.value == "UTM"
    assert resolve_payroll_parameters(parameters, "2024-05")["UTM"] == Decimal("65000")

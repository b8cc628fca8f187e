import logging
import logging.handlers
from decimal import Decimal

import pytest

from backoffice.core.errors import ImbalanceError, ValidationError
from backoffice.core.utils import (
    period_end_date, round_money, setup_logging, to_money, validate_date, validate_period,
)

def test_setup_logging_idempotent(tmp_path):
    logger1 = setup_logging("tmptest")
    handlers_before = len(logger1.handlers)
    logger2 = setup_logging("tmptest")
    handlers_after = len(logger2.handlers)
    assert handlers_before == handlers_after
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger2.handlers)

def test_round_money_half_up():
    assert round_money(Decimal("2.5")) == 3
    assert round_money(Decimal("3.5")) == 4
    assert round_money(Decimal("3760.8")) == 3761
    assert round_money(Decimal("-2.5")) == -3

def test_to_money():
    assert to_money("1200") == 1200
    assert to_money(1200.0) == 1200
    with pytest.raises(ValidationError):
        to_money("12.5")
    with pytest.raises(ValidationError):
        to_money(True)

def test_period_helpers():
    assert validate_period("2024-02") == "2024-02"
    assert period_end_date("2024-02") == "2024-02-29"
    with pytest.raises(ValidationError):
        validate_period("2024-13")
    with pytest.raises(ValidationError):
        validate_period("202405")

def test_error_to_dict():
    data = ImbalanceError(100, 90).to_dict()
    assert data["code"] == "IMBALANCE"
    assert data["delta"] == 10

def test_to_money_rejects_non_finite():
    for value in ["Infinity", Decimal("-Infinity"), "NaN"]:
        with pytest.raises(ValidationError):
            to_money(value)

def test_validate_date():
    assert validate_date("2024-02-29") == "2024-02-29"
    for bad in ["2023-02-29", "2024-5-01", "abcd-05-01", None]:
        with pytest.raises(ValidationError):
            validate_date(bad)

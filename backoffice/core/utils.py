import calendar
import logging
import os
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from backoffice.core.config import settings
from backoffice.core.errors import ValidationError

PERIOD_RE = re.compile(r"^[0-9]{4}-(0[1-9]|1[0-2])$")
DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

def mkdir_safe(path: str):
    Path(path).mkdir(parents=True, exist_ok=True)

def setup_logging(name: str = "system", *, log_level: Optional[str] = None) -> logging.Logger:
    """Attach a rotating file handler to the ``APP_NAME.name`` logger once."""
    logger_name = f"{settings.APP_NAME}.{name}"
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger
    level = log_level or settings.LOG_LEVEL
    logger.setLevel(getattr(logging, level.upper()))
    mkdir_safe(settings.LOG_DIR)
    logfile = Path(settings.LOG_DIR) / f"{name}.log"
    handler = RotatingFileHandler(str(logfile), maxBytes=10_000_000, backupCount=5)
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    if os.getenv("DEV", "").lower() in ("1", "true", "yes"):
        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        logger.addHandler(ch)
    logger.propagate = False
    return logger

def to_decimal(value: Any, field: str = "value") -> Decimal:
    """Coerce ints, strings and Decimals; floats go through ``str`` to keep their printed value."""
    if isinstance(value, bool):
        raise ValidationError(field, value, "expected a number")
    if isinstance(value, Decimal):
        return value
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(field, value, "expected a number") from None

def to_money(value: Any, field: str = "amount") -> int:
    """Integer currency units. Fractional input is rejected, not rounded."""
    amount = to_decimal(value, field)
    if not amount.is_finite():
        raise ValidationError(field, value, "money must be a finite amount")
    if amount != amount.to_integral_value():
        raise ValidationError(field, value, "money must be a whole number of currency units")
    return int(amount)

def round_money(value: Decimal) -> int:
    # ROUND_HALF_UP; builtin round() rounds half to even
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def validate_period(period: str) -> str:
    if not isinstance(period, str) or not PERIOD_RE.fullmatch(period):
        raise ValidationError("period", period, "expected YYYY-MM")
    return period

def period_end_date(period: str) -> str:
    """Last calendar day of a ``YYYY-MM`` period as an ISO date string."""
    validate_period(period)
    year, month = int(period[:4]), int(period[5:])
    return f"{period}-{calendar.monthrange(year, month)[1]:02d}"

def validate_date(value: str) -> str:
    """ISO ``YYYY-MM-DD`` document date."""
    if not isinstance(value, str) or not DATE_RE.fullmatch(value):
        raise ValidationError("date", value, "expected YYYY-MM-DD")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError("date", value, "not a calendar date") from None
    return value

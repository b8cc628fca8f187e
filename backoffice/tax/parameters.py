"""
Period parameter resolution (UF, UTM, taxable ceilings, VAT rate).

Parameters are re-resolved on every call; nothing is cached.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, Union

from backoffice.core.errors import MissingParameter, ValidationError
from backoffice.core.schemas import ParameterName, PeriodParameter

logger = logging.getLogger(__name__)

PAYROLL_PARAMETERS = (ParameterName.UF, ParameterName.UTM, ParameterName.TOPE_IMPONIBLE)
INVOICE_PARAMETERS = (ParameterName.IVA,)

NameLike = Union[str, ParameterName]

def _name(name: NameLike) -> str:
    return name.value if isinstance(name, ParameterName) else name

def resolve_parameters(
    params: Iterable[PeriodParameter],
    period: str,
    required: Iterable[NameLike],
) -> Dict[str, Decimal]:
    """Return ``name -> value`` for ``period``; raise ``MissingParameter`` for the first absent required name."""
    values: Dict[str, Decimal] = {}
    for p in params:
        if p.period != period:
            continue
        if p.name in values:
            raise ValidationError("parameter", p.name, f"defined more than once for period {period}")
        values[p.name] = p.value

    names = [_name(n) for n in required]
    if isinstance(required, (set, frozenset)):
        names = sorted(names)
    for name in names:
        if name not in values:
            raise MissingParameter(name, period)
    logger.debug("resolved %d parameters for %s", len(values), period)
    return values

def resolve_payroll_parameters(params: Iterable[PeriodParameter], period: str) -> Dict[str, Decimal]:
    """``resolve_parameters`` for payroll; UF, UTM and the taxable ceiling must be positive."""
    values = resolve_parameters(params, period, PAYROLL_PARAMETERS)
    for name in PAYROLL_PARAMETERS:
        value = values[name.value]
        if not value.is_finite() or value <= 0:
            raise ValidationError("parameter", name.value, f"must be positive for period {period}, got {value}")
    return values

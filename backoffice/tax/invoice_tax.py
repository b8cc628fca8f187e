from decimal import Decimal
from typing import Dict, Iterable, Optional

from backoffice.core.config import settings
from backoffice.core.errors import ValidationError
from backoffice.core.schemas import FeeInvoice, Invoice, InvoiceKind, ParameterName, PeriodParameter
from backoffice.core.utils import round_money, to_money, validate_date
from backoffice.tax.parameters import INVOICE_PARAMETERS, resolve_parameters

def invoice_tax(net: int, parameters: Iterable[PeriodParameter], period: str, exempt: bool = False) -> int:
    """IVA over the net amount. Exempt documents carry no tax and need no rate."""
    net = to_money(net, "net")
    if exempt:
        return 0
    values = resolve_parameters(parameters, period, INVOICE_PARAMETERS)
    return round_money(net * values[ParameterName.IVA.value])

def build_invoice(
    date: str,
    number: str,
    kind: InvoiceKind,
    net: int,
    parameters: Iterable[PeriodParameter],
    subject_rut: str = "",
    exempt: bool = False,
) -> Invoice:
    period = validate_date(date)[:7]
    tax = invoice_tax(net, parameters, period, exempt=exempt)
    net = to_money(net, "net")
    return Invoice(date=date, number=number, kind=InvoiceKind(kind), net=net, tax=tax,
                   total=net + tax, subject_rut=subject_rut, exempt=exempt)

def fee_retention_rate(year: int, rates: Optional[Dict[int, Decimal]] = None) -> Decimal:
    table = settings.FEE_RETENTION_RATES if rates is None else rates
    if year not in table:
        raise ValidationError("year", year, "no fee retention rate defined")
    return Decimal(table[year])

def fee_invoice_from_gross(
    date: str,
    number: str,
    gross: int,
    subject_rut: str = "",
    rates: Optional[Dict[int, Decimal]] = None,
) -> FeeInvoice:
    """Boleta de honorarios: the payer withholds the year's retention rate from the gross fee."""
    gross = to_money(gross, "gross")
    retention = round_money(gross * fee_retention_rate(int(validate_date(date)[:4]), rates))
    return FeeInvoice(date=date, number=number, gross=gross, retention=retention,
                      net=gross - retention, subject_rut=subject_rut)

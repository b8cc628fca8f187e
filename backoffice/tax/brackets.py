"""
Impuesto Unico de Segunda Categoria bracket selection.

Brackets are expressed in UTM. For a well-formed period table exactly one
bracket matches any positive base (``from < base <= to``; the last bracket is
open-ended).
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from backoffice.core.schemas import TaxBracket
from backoffice.core.utils import to_decimal

logger = logging.getLogger(__name__)

def select_bracket(
    brackets: Iterable[TaxBracket],
    period: str,
    base_in_units: Decimal,
) -> Optional[TaxBracket]:
    """Return the bracket for ``base_in_units``, or None when no tax applies.

    Malformed tables where several brackets match resolve to the first one in
    input order, with a warning.
    """
    base = to_decimal(base_in_units, "base_in_units")
    if base <= 0:
        return None
    matches = [b for b in brackets if b.period == period and b.matches(base)]
    if not matches:
        logger.warning("no tax bracket matches base %s UTM for period %s", base, period)
        return None
    if len(matches) > 1:
        logger.warning(
            "%d tax brackets match base %s UTM for period %s; using the first",
            len(matches), base, period,
        )
    return matches[0]

def validate_brackets(brackets: Iterable[TaxBracket], period: str) -> List[str]:
    """Check one period's table for contiguity. Returns the problems found (empty if none)."""
    table = sorted((b for b in brackets if b.period == period), key=lambda b: b.from_units)
    problems: List[str] = []
    if not table:
        problems.append(f"no brackets defined for period {period}")
    else:
        if table[0].from_units != 0:
            problems.append(f"first bracket starts at {table[0].from_units} instead of 0")
        for b in table:
            if not (0 <= b.rate <= 1):
                problems.append(f"bracket from {b.from_units} has rate {b.rate} outside [0, 1]")
            if b.to_units is not None and b.to_units <= b.from_units:
                problems.append(f"bracket from {b.from_units} has upper bound {b.to_units} not above its lower bound")
        open_ended = [b for b in table if b.to_units is None]
        if len(open_ended) != 1:
            problems.append(f"expected exactly one open-ended bracket, found {len(open_ended)}")
        for prev, nxt in zip(table, table[1:]):
            if prev.to_units is None:
                problems.append(f"open-ended bracket from {prev.from_units} is followed by bracket from {nxt.from_units}")
            elif nxt.from_units > prev.to_units:
                problems.append(f"gap between {prev.to_units} and {nxt.from_units}")
            elif nxt.from_units < prev.to_units:
                problems.append(f"overlap between bracket ending {prev.to_units} and bracket from {nxt.from_units}")
    for problem in problems:
        logger.warning("tax brackets %s: %s", period, problem)
    return problems

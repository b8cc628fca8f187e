"""
RUT (Rol Unico Tributario) check digit validation and formatting.

Canonical form is ``nnn.nnn.nnn-D``. Both canonical and unformatted
(``nnnnnnnn-D``) strings are accepted by ``validate_rut``.
"""
import re
from itertools import cycle

RUT_RE = re.compile(r"^([0-9]+)-([0-9kK])$")
NON_RUT_CHARS = re.compile(r"[^0-9kK]")

def compute_check_digit(body: str) -> str:
    """Modulus 11 over the numeric body, multipliers 2..7 from the right."""
    total = sum(int(d) * m for d, m in zip(reversed(body), cycle(range(2, 8))))
    remainder = 11 - (total % 11)
    if remainder == 11:
        return "0"
    if remainder == 10:
        return "K"
    return str(remainder)

def validate_rut(value) -> bool:
    if not isinstance(value, str):
        return False
    match = RUT_RE.match(value.strip().replace(".", ""))
    if not match:
        return False
    body, check = match.groups()
    return compute_check_digit(body) == check.upper()

def clean_rut(raw: str) -> str:
    """``76.523.829-3`` -> ``76523829-3``"""
    value = NON_RUT_CHARS.sub("", raw or "")
    if len(value) < 2:
        return value.upper()
    return f"{value[:-1]}-{value[-1].upper()}"

def format_rut(raw: str) -> str:
    value = NON_RUT_CHARS.sub("", raw or "")
    if len(value) < 2:
        return value.upper()
    body, check = value[:-1], value[-1].upper()
    groups = []
    while body:
        groups.insert(0, body[-3:])
        body = body[:-3]
    return f"{'.'.join(groups)}-{check}"

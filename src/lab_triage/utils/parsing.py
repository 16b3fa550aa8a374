# ============================================================================
# src/lab_triage/utils/parsing.py
# ============================================================================
"""
Parsing utilities for lab value extraction.

Chilean reports write decimals with a comma ("0,91") and, in large counts,
may mix a dot thousands separator with a decimal comma ("4.500,5").
"""

import re
from typing import Optional, Tuple, Union

# A single numeric token as printed on Chilean lab reports
NUMBER_PATTERN = r'\d{1,3}(?:\.\d{3})+,\d+|\d+(?:[.,]\d+)?'

# Literal in-document abnormal flag after normalization
ABNORMAL_MARKER = '[*]'

_UNIT_LIKE_PATTERNS = [
    r'^x?10\^?E?\d',         # x10^6/uL, 10E3
    r'^[a-zA-Zµμ]+/[a-zA-Z]+',  # mg/dL, mEq/L
    r'^/[a-zA-Z]+',          # /uL
]


def normalize_decimal(value_str: str) -> str:
    """
    Convert a Chilean formatted number into decimal-point form.

    Examples:
        "0,91"    -> "0.91"
        "4.500,5" -> "4500.5"
        "14.2"    -> "14.2"
    """
    value_str = value_str.strip()
    if ',' in value_str and '.' in value_str:
        return value_str.replace('.', '').replace(',', '.')
    return value_str.replace(',', '.')


def parse_numeric_value(value_str: Optional[str]) -> Optional[float]:
    """
    Extract a numeric value from a result string.

    Handles values like:
    - "269"
    - "0,91"     (decimal comma)
    - "< 0,5"    (comparator prefixed)
    - "42,0 %"   (trailing unit)

    Rejects unit-like strings ("x10^6/uL", "mg/dL") that would produce
    garbage numbers.
    """
    if value_str is None:
        return None

    value_str = str(value_str).strip()
    if not value_str:
        return None

    for pattern in _UNIT_LIKE_PATTERNS:
        if re.match(pattern, value_str, re.IGNORECASE):
            return None

    match = re.match(rf'^[<>=]?\s*(-?(?:{NUMBER_PATTERN}))', value_str)
    if not match:
        return None

    try:
        return float(normalize_decimal(match.group(1)))
    except ValueError:
        return None


def is_numeric_text(value: Union[str, float, int, None]) -> bool:
    """True if the value is, or fully parses as, a single number."""
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return re.fullmatch(rf'\s*-?(?:{NUMBER_PATTERN})\s*', value) is not None


def split_abnormal_marker(text: str) -> Tuple[str, bool]:
    """
    Remove the abnormal marker from a text fragment.

    Returns:
        (text_without_marker, marker_was_present)
    """
    if not text:
        return "", False
    if ABNORMAL_MARKER in text:
        return text.replace(ABNORMAL_MARKER, ' ').strip(), True
    return text.strip(), False


def clean_unit(unit: Optional[str]) -> Optional[str]:
    """Strip parentheses and whitespace around a unit; empty -> None."""
    if not unit:
        return None
    unit = unit.strip().strip('()').strip()
    return unit or None


def normalize_unit_key(unit: Optional[str]) -> str:
    """Case/space-insensitive unit key for comparing (mUI/L == mui/l)."""
    if not unit:
        return ""
    key = unit.lower().replace(' ', '')
    key = key.replace('μ', 'u').replace('µ', 'u')
    return key


def units_match(unit: Optional[str], reference_unit: Optional[str], aliases: Tuple[str, ...] = ()) -> bool:
    """
    True when a printed unit is the reference unit or one of its aliases.

    A result printed without a unit, or a reference without one, matches.
    """
    if not unit or not reference_unit:
        return True
    key = normalize_unit_key(unit)
    return key == normalize_unit_key(reference_unit) or key in {normalize_unit_key(a) for a in aliases}

# ============================================================================
# src/lab_triage/utils/rut.py
# ============================================================================
"""
Chilean RUT (Rol Único Tributario) helpers

A RUT is 7-8 body digits plus a check digit (0-9 or K) computed with the
modulo-11 algorithm: body digits are multiplied right-to-left by the cycling
weights 2..7, summed, and the check digit is 11 - (sum % 11), with 11 -> 0
and 10 -> K.

Examples:
    12.345.678-5  (formatted)
    12345678-5    (undotted)
    123456785     (clean)
"""

import re
from typing import Optional

RUT_CLEAN_PATTERN = re.compile(r'^(\d{7,8})([0-9K])$')

# OCR misreads seen inside digit runs
_OCR_DIGIT_FIXES = {
    'O': '0', 'o': '0', 'Q': '0', 'D': '0',
    'l': '1', 'I': '1', 'i': '1', '|': '1',
    'S': '5', 's': '5',
    'B': '8',
    'Z': '2', 'z': '2',
    'G': '6',
}


def clean_rut(value: str) -> str:
    """Strip dots, hyphens and spaces; uppercase the check digit."""
    if not value:
        return ""
    return re.sub(r'[.\-\s]', '', value).upper()


def calculate_check_digit(body: str) -> str:
    """
    Compute the modulo-11 check digit for a RUT body.

    Args:
        body: 7-8 digit RUT body (no check digit)

    Returns:
        '0'-'9' or 'K'
    """
    total = 0
    multiplier = 2
    for digit in reversed(body):
        total += int(digit) * multiplier
        multiplier = 2 if multiplier == 7 else multiplier + 1

    remainder = total % 11
    if remainder == 0:
        return '0'
    if remainder == 1:
        return 'K'
    return str(11 - remainder)


def validate_rut(value: str) -> bool:
    """
    Check format and checksum of a RUT.

    Accepts formatted, undotted or clean input.
    """
    clean = clean_rut(value)
    match = RUT_CLEAN_PATTERN.match(clean)
    if not match:
        return False
    body, check_digit = match.groups()
    return calculate_check_digit(body) == check_digit


def format_rut(value: str) -> str:
    """
    Format a RUT with thousand dots and hyphen (12.345.678-5).

    Values that cannot be a RUT are returned unchanged.
    """
    clean = clean_rut(value)
    if len(clean) < 2 or not clean[:-1].isdigit():
        return value

    body, check_digit = clean[:-1], clean[-1]
    groups = []
    while len(body) > 3:
        groups.insert(0, body[-3:])
        body = body[:-3]
    groups.insert(0, body)
    return f"{'.'.join(groups)}-{check_digit}"


def anonymize_rut(value: str) -> str:
    """Mask a RUT for logs: keep first body digit and check digit (1*******-5)."""
    clean = clean_rut(value)
    if len(clean) < 3:
        return "*" * len(clean)
    return f"{clean[0]}{'*' * (len(clean) - 2)}-{clean[-1]}"


def fix_rut_ocr(value: str) -> str:
    """
    Repair OCR misreads inside a RUT-looking token.

    Letters are only replaced in the body; a trailing K is kept as check digit.
    """
    if not value:
        return value

    chars = list(value)
    last_index = len(chars) - 1
    for i, char in enumerate(chars):
        if i == last_index and char in ('K', 'k'):
            chars[i] = 'K'
            continue
        if char in _OCR_DIGIT_FIXES:
            chars[i] = _OCR_DIGIT_FIXES[char]
    return ''.join(chars)


def generate_rut(body: int) -> str:
    """Build a valid formatted RUT from a numeric body (test and demo helper)."""
    body_str = str(body)
    return format_rut(body_str + calculate_check_digit(body_str))


def parse_rut(value: str) -> Optional[str]:
    """Return the formatted RUT if valid, else None."""
    if validate_rut(value):
        return format_rut(value)
    return None

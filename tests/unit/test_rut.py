# ============================================================================
# FILE: tests/unit/test_rut.py
# ============================================================================
"""
Unit tests for Chilean RUT helpers
"""

import pytest

from lab_triage.utils.rut import (
    anonymize_rut,
    calculate_check_digit,
    clean_rut,
    fix_rut_ocr,
    format_rut,
    generate_rut,
    parse_rut,
    validate_rut,
)


@pytest.mark.parametrize("rut", [
    "12.345.678-5",
    "11.111.111-1",
    "7.654.321-6",
    "12.345.670-K",
    "12.345.675-0",
    "12345678-5",
    "123456785",
    "12.345.670-k",
])
def test_valid_ruts(rut):
    """Test checksum-valid RUTs in every accepted notation"""
    assert validate_rut(rut) is True


@pytest.mark.parametrize("rut", [
    "12.345.678-9",
    "12.345.670-1",
    "123456",
    "",
    "12.345.67A-5",
])
def test_invalid_ruts(rut):
    """Test wrong check digits and malformed values"""
    assert validate_rut(rut) is False


def test_check_digit_k_and_zero():
    """Test remainder 1 maps to K and remainder 0 maps to 0"""
    assert calculate_check_digit("12345670") == "K"
    assert calculate_check_digit("12345675") == "0"


def test_clean_rut():
    """Test separators are stripped and K uppercased"""
    assert clean_rut("12.345.670-k") == "12345670K"
    assert clean_rut(" 12 345 678-5 ") == "123456785"


def test_format_rut():
    """Test thousands dots and hyphen are applied"""
    assert format_rut("123456785") == "12.345.678-5"
    assert format_rut("76543216") == "7.654.321-6"
    assert format_rut("ABC") == "ABC"


def test_anonymize_rut():
    """Test only the first digit and check digit survive"""
    assert anonymize_rut("12.345.678-5") == "1*******-5"


def test_fix_rut_ocr():
    """Test OCR letter misreads are repaired in the body only"""
    assert fix_rut_ocr("l2.345.67B-5") == "12.345.678-5"
    assert fix_rut_ocr("12.345.670-k") == "12.345.670-K"


def test_generate_and_parse_rut():
    """Test generated RUTs validate and parse back to the same value"""
    rut = generate_rut(15123456)
    assert validate_rut(rut)
    assert parse_rut(rut.replace(".", "")) == rut
    assert parse_rut("12.345.678-9") is None

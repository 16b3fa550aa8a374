# ============================================================================
# FILE: tests/unit/test_identity_extractor.py
# ============================================================================
"""
Unit tests for patient RUT extraction
"""

import pytest

from lab_triage.core.context import IdentityCandidate, SourceContext
from lab_triage.extractors.identity_extractor import (
    IdentityExtractor,
    classify_source_context,
    extract_identity,
)
from lab_triage.utils.rut import generate_rut, validate_rut


def test_extract_labeled_rut(sample_report_text):
    """Test a labeled, checksum-valid RUT becomes the best match"""
    result = IdentityExtractor().extract(sample_report_text)

    assert result.found
    assert result.best_match.formatted_value == "12.345.678-5"
    assert result.best_match.is_valid is True
    assert 0 <= result.best_match.confidence <= 100


def test_candidates_merged_by_value(sample_report_text):
    """Test several patterns hitting one RUT yield one candidate"""
    result = IdentityExtractor().extract(sample_report_text)

    values = [c.formatted_value for c in result.candidates]
    assert values.count("12.345.678-5") == 1


def test_invalid_checksum_still_reported():
    """Test an invalid RUT is returned when nothing better exists"""
    result = extract_identity("RUT: 12.345.678-9")

    assert result.found
    assert result.best_match.is_valid is False
    assert result.valid_candidates == []


def test_valid_candidate_preferred_over_invalid():
    """Test the checksum-valid candidate wins over a higher-scored invalid one"""
    invalid = IdentityCandidate(
        raw_value="12.345.678-9", formatted_value="12.345.678-9", is_valid=False,
        confidence=99.0, source_context=SourceContext.FORM, position=0,
    )
    valid = IdentityCandidate(
        raw_value="7654321-6", formatted_value="7.654.321-6", is_valid=True,
        confidence=60.0, source_context=SourceContext.BODY, position=50,
    )

    assert IdentityExtractor().select_best([invalid, valid]) is valid


def test_missing_hyphen_repaired():
    """Test a RUT printed without hyphen gets one inserted"""
    result = extract_identity("Cédula 12345678 5")

    assert result.best_match.formatted_value == "12.345.678-5"
    assert result.best_match.is_valid


def test_ocr_damaged_rut_repaired():
    """Test OCR letter misreads inside a dotted RUT are repaired"""
    result = extract_identity("RUT: l2.345.67B-5")

    assert result.best_match.formatted_value == "12.345.678-5"
    assert result.best_match.raw_value == "l2.345.67B-5"
    assert result.best_match.pattern_name == "ocr_damaged"


def test_no_rut_found():
    """Test text without identifiers yields no best match"""
    result = extract_identity("Teléfono: 912345678\nGLICEMIA   95 (mg/dL)")

    assert not result.found
    assert result.candidates == []


def test_empty_text():
    """Test empty text is handled"""
    assert not IdentityExtractor().extract("").found


def test_classify_source_context():
    """Test layout context detection from surrounding text"""
    assert classify_source_context("Datos del Paciente 12.345.678-5") == SourceContext.HEADER
    assert classify_source_context("RUT: 12.345.678-5") == SourceContext.FORM
    assert classify_source_context("| 12.345.678-5 |") == SourceContext.TABLE
    assert classify_source_context("emitido para 12.345.678-5") == SourceContext.BODY


def test_candidates_sorted_by_confidence():
    """Test candidates come back highest confidence first"""
    text = "Paciente RUT: 12.345.678-5\notro valor 7.654.321-6"
    result = extract_identity(text)

    confidences = [c.confidence for c in result.candidates]
    assert confidences == sorted(confidences, reverse=True)
    assert result.best_match.formatted_value == "12.345.678-5"


CHECK_DIGITS = "0123456789K"

# A coarse sweep over 7 and 8 digit bodies plus a dense run that hits every check digit
SWEEP_BODIES = list(range(1_000_000, 30_000_000, 1_234_567)) + list(range(15_000_000, 15_000_100))


def _single_character_corruptions(rut):
    """Every variant of a formatted RUT with one body digit or the check digit replaced."""
    for index, char in enumerate(rut):
        alphabet = "0123456789" if char.isdigit() and index < len(rut) - 1 else CHECK_DIGITS
        if char in ".-":
            continue
        for replacement in alphabet:
            if replacement != char:
                yield rut[:index] + replacement + rut[index + 1:]


def test_sweep_covers_every_check_digit():
    assert {generate_rut(body)[-1] for body in SWEEP_BODIES} == set(CHECK_DIGITS)


@pytest.mark.parametrize("body", SWEEP_BODIES)
def test_checksum_valid_ruts_are_accepted(body):
    """Test every checksum-valid RUT is extracted as valid"""
    rut = generate_rut(body)
    result = IdentityExtractor().extract(f"RUT: {rut}")

    assert result.best_match.formatted_value == rut
    assert result.best_match.is_valid is True


@pytest.mark.parametrize("body", SWEEP_BODIES[::7])
def test_single_digit_corruption_is_rejected(body):
    """Test changing any one digit of a valid RUT breaks the checksum"""
    extractor = IdentityExtractor()
    for corrupted in _single_character_corruptions(generate_rut(body)):
        result = extractor.extract(f"RUT: {corrupted}")

        assert result.found, corrupted
        assert result.best_match.is_valid is False, corrupted
        assert validate_rut(corrupted) is False, corrupted

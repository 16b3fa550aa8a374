# ============================================================================
# FILE: tests/unit/test_validators.py
# ============================================================================
"""
Unit tests for noise filtering and deduplication
"""

import pytest

from lab_triage.core.context import ResultKind
from lab_triage.validators.deduplicator import Deduplicator, selection_key
from lab_triage.validators.noise_filter import NoiseFilter


@pytest.mark.parametrize("exam_name, reason", [
    ("PH", "exam name too short"),
    ("GLUCOSA95", "numeric literal glued to exam name"),
    ("CREATININA,", "exam name ends with a dangling comma"),
])
def test_noise_filter_rejects_bad_names(make_result, exam_name, reason):
    """Test malformed exam names are rejected with a reason"""
    assert NoiseFilter().rejection_reason(make_result(exam_name=exam_name)) == reason


def test_noise_filter_keeps_vitamin_b12(make_result):
    """Test a marker name ending in digits is not treated as glued noise"""
    result = make_result(exam_name="VITAMINA B12", system_code="vitamin_b12")
    assert NoiseFilter().rejection_reason(result) is None


def test_noise_filter_value_rules(make_result):
    """Test empty and non-numeric values"""
    noise = NoiseFilter()

    assert noise.rejection_reason(make_result(raw_value="  ", kind=ResultKind.QUALITATIVE)) == "empty value"
    assert noise.rejection_reason(make_result(raw_value="abc")) == "non-numeric value for numeric result"
    assert noise.rejection_reason(make_result(raw_value="Negativo", kind=ResultKind.QUALITATIVE)) is None


def test_noise_filter_confidence_floor(make_result):
    """Test candidates below the confidence floor are dropped"""
    kept = NoiseFilter(min_confidence=0.5).filter([
        make_result(confidence=0.3),
        make_result(confidence=0.9, position=10),
    ])

    assert [r.confidence for r in kept] == [0.9]


def test_dedup_keeps_higher_confidence(make_result):
    """Test two strategies hitting HbA1c keep only the higher confidence one"""
    column = make_result(
        exam_name="HEMOGLOBINA GLICADA A1C", raw_value=7.2, system_code="hba1c",
        confidence=0.95, position=40, strategy="column_aligned",
    )
    multi_line = make_result(
        exam_name="HEMOGLOBINA GLICADA A1C", raw_value=7.2, system_code="hba1c",
        confidence=0.80, position=40, strategy="multi_line",
    )

    results = Deduplicator().deduplicate([multi_line, column])

    assert len(results) == 1
    assert results[0].strategy == "column_aligned"


def test_dedup_prefers_matching_sample_type(make_result):
    """Test a CBC parameter from whole blood beats the serum copy at equal confidence"""
    serum = make_result(exam_name="LINFOCITOS", system_code="lymphocytes", sample_type="SUERO", position=5)
    blood = make_result(
        exam_name="LINFOCITOS", system_code="lymphocytes", sample_type="SANGRE TOTAL + E.D.T.A.", position=90,
    )

    results = Deduplicator().deduplicate([serum, blood])

    assert len(results) == 1
    assert results[0].sample_type == "SANGRE TOTAL + E.D.T.A."


def test_dedup_earliest_position_breaks_ties(make_result):
    """Test the earliest candidate wins when everything else is equal"""
    late = make_result(position=200)
    early = make_result(position=10)

    assert Deduplicator().deduplicate([late, early])[0].source_position == 10


def test_dedup_one_result_per_code_sorted_by_position(make_result):
    """Test at most one result per canonical code, in document order"""
    candidates = [
        make_result(system_code="creatinine", exam_name="CREATININA", position=300),
        make_result(system_code="glucose_fasting", position=100),
        make_result(system_code="glucose_fasting", position=100, confidence=0.7, strategy="embedded"),
        make_result(system_code=None, exam_name="Examen  libre", position=50),
        make_result(system_code=None, exam_name="EXAMEN LIBRE", position=60),
    ]

    results = Deduplicator().deduplicate(candidates)

    keys = [r.dedup_key for r in results]
    assert keys == ["EXAMEN LIBRE", "glucose_fasting", "creatinine"]
    assert len(set(keys)) == len(keys)


def test_selection_key_order(make_result):
    """Test confidence dominates position"""
    assert selection_key(make_result(confidence=0.9, position=500)) < selection_key(
        make_result(confidence=0.8, position=0)
    )

# ============================================================================
# FILE: tests/unit/test_severity_classifier.py
# ============================================================================
"""
Unit tests for severity classification
"""

from dataclasses import replace

import pytest

from lab_triage.core.context import RangeKind, ReferenceRange, ResultKind, Severity
from lab_triage.clinical.severity_classifier import (
    PRIORITY_WEIGHTS,
    SeverityClassifier,
    bucket_deviation,
    classify_result,
)


@pytest.fixture
def classifier():
    return SeverityClassifier()


@pytest.mark.parametrize("deviation, severity", [
    (0.0, Severity.NORMAL),
    (-5.0, Severity.NORMAL),
    (0.1, Severity.MILD),
    (49.9, Severity.MILD),
    (50.0, Severity.MODERATE),
    (99.9, Severity.MODERATE),
    (100.0, Severity.SEVERE),
    (400.0, Severity.SEVERE),
])
def test_bucket_deviation(deviation, severity):
    """Test deviation buckets"""
    assert bucket_deviation(deviation) == severity


def test_critical_glucose_is_severe(classifier, make_result, make_range):
    """Test glucose 269 over 74-106 is severe, abnormal and critical"""
    result = make_result(raw_value=269.0, flagged=True, reference_range=make_range(74, 106))
    classification = classifier.classify(result)

    assert classification.severity == Severity.SEVERE
    assert classification.is_abnormal is True
    assert classification.is_critical_value is True
    assert classification.priority_weight == PRIORITY_WEIGHTS[Severity.SEVERE]
    assert classification.deviation_percent == pytest.approx(509.4)
    assert "crítico" in classification.reasoning


def test_normal_cholesterol(classifier, make_result, make_range):
    """Test cholesterol 95 inside 0-200 is normal with zero weight"""
    result = make_result(
        exam_name="COLESTEROL TOTAL", raw_value=95.0, system_code="cholesterol_total",
        reference_range=make_range(0, 200),
    )
    classification = classifier.classify(result)

    assert classification.severity == Severity.NORMAL
    assert classification.is_abnormal is False
    assert classification.priority_weight == 0
    assert classification.deviation_percent == 0.0


def test_override_table_wins_over_buckets(classifier, make_result, make_range):
    """Test glucose 190 uses the glucose override instead of the deviation bucket"""
    result = make_result(raw_value=190.0, reference_range=make_range(74, 106))
    classification = classifier.classify(result)

    # 262.5% deviation would bucket as severe; the override grades it moderate
    assert classification.severity == Severity.MODERATE
    assert classification.is_critical_value is False


def test_override_default_for_small_excess(classifier, make_result, make_range):
    """Test a value just out of range falls to the override default"""
    result = make_result(raw_value=110.0, reference_range=make_range(74, 106))
    assert classifier.classify(result).severity == Severity.MILD


def test_critical_escalates_mild_to_severe(classifier, make_result, make_range):
    """Test a critical low glucose is escalated to severe"""
    result = make_result(raw_value=45.0, reference_range=make_range(74, 106))
    classification = classifier.classify(result)

    assert classification.severity == Severity.SEVERE
    assert classification.is_critical_value is True
    assert "Escalado" in classification.reasoning


def test_critical_without_range(classifier, make_result):
    """Test a critical value is flagged even when no range was printed"""
    classification = classifier.classify(make_result(raw_value=300.0))

    assert classification.severity == Severity.SEVERE
    assert classification.is_abnormal is True
    assert classification.is_critical_value is True


def test_no_range_is_normal(classifier, make_result):
    """Test a non-critical value without range is normal"""
    classification = classifier.classify(make_result(raw_value=150.0))

    assert classification.severity == Severity.NORMAL
    assert classification.is_abnormal is False


@pytest.mark.parametrize("value, severity", [
    (1.2, Severity.MILD),
    (1.5, Severity.MODERATE),
    (2.5, Severity.SEVERE),
])
def test_deviation_buckets_for_marker_without_override(classifier, make_result, make_range, value, severity):
    """Test creatinine over 0.5-1.1 is graded by deviation"""
    result = make_result(
        exam_name="CREATININA", raw_value=value, system_code="creatinine",
        reference_range=make_range(0.5, 1.1),
    )
    assert classifier.classify(result).severity == severity


def test_upper_limit_range(classifier, make_result):
    """Test deviation against an upper-limit range"""
    upper = ReferenceRange(kind=RangeKind.UPPER_LIMIT, max_value=150.0, raw_text="< 150")
    result = make_result(
        exam_name="TRIGLICERIDOS", raw_value=240.0, system_code="triglycerides", reference_range=upper,
    )
    classification = classifier.classify(result)

    assert classification.deviation_percent == pytest.approx(60.0)
    assert classification.severity == Severity.MODERATE


def test_qualitative_results(classifier, make_result):
    """Test word results are normal unless flagged by the lab"""
    plain = make_result(
        exam_name="NITRITOS", raw_value="Negativo", system_code="urine_nitrites", kind=ResultKind.QUALITATIVE,
    )
    flagged = make_result(
        exam_name="NITRITOS", raw_value="Positivo", system_code="urine_nitrites",
        kind=ResultKind.QUALITATIVE, flagged=True,
    )

    assert classifier.classify(plain).severity == Severity.NORMAL
    assert classifier.classify(flagged).severity == Severity.MILD
    assert classifier.classify(flagged).is_abnormal is True


def test_explicit_range_argument(make_result, make_range):
    """Test an explicit range overrides the result's own"""
    result = make_result(raw_value=120.0, reference_range=make_range(74, 106))
    classification = classify_result(result)
    wide = SeverityClassifier().classify(result, make_range(70, 140))

    assert classification.is_abnormal is True
    assert wide.is_abnormal is False


def test_override_skipped_for_other_unit(classifier, make_result, make_range):
    """Test HbA1c in mmol/mol is graded by deviation, not the % cutoffs"""
    result = make_result(
        exam_name="HBA1C", raw_value=53.0, system_code="hba1c", unit="mmol/mol",
        reference_range=make_range(20, 42),
    )
    classification = classifier.classify(result)

    assert classification.deviation_percent == pytest.approx(50.0)
    assert classification.severity == Severity.MODERATE
    assert classification.is_critical_value is False
    assert "Unidad mmol/mol distinta de %" in classification.reasoning


def test_glucose_in_mmol_is_not_critical(classifier, make_result, make_range):
    """Test glucose 6.0 mmol/L over 3.9-5.6 is a mild deviation, not a critical low"""
    result = make_result(raw_value=6.0, unit="mmol/L", reference_range=make_range(3.9, 5.6))
    classification = classifier.classify(result)

    assert classification.severity == Severity.MILD
    assert classification.is_critical_value is False
    assert "Escalado" not in classification.reasoning


def test_override_accepts_unit_alias(classifier, make_result, make_range):
    """Test glucose printed in mg % still uses the glucose override"""
    result = make_result(raw_value=190.0, unit="mg %", reference_range=make_range(74, 106))
    classification = classifier.classify(result)

    assert classification.severity == Severity.MODERATE
    assert "umbrales específicos de glucose" in classification.reasoning


def test_gender_only_ranges_are_flagged_for_review(classifier, make_result):
    """Test a result left without a range for lack of patient sex says so"""
    result = replace(
        make_result(exam_name="HEMOGLOBINA", raw_value=12.5, system_code="hemoglobin", unit="g/dL"),
        reference_range_text="H: 13 - 17   M: 12 - 16",
        range_needs_sex=True,
    )
    classification = classifier.classify(result)

    assert classification.severity == Severity.NORMAL
    assert classification.is_abnormal is False
    assert "requiere revisión" in classification.reasoning

# ============================================================================
# FILE: tests/unit/test_summary.py
# ============================================================================
"""
Unit tests for report summary and recommended action
"""

from dataclasses import replace

import pytest

from lab_triage.clinical.summary import (
    ACTION_CRITICAL,
    ACTION_HIGH,
    ACTION_MEDIUM,
    ACTION_NO_DATA,
    ACTION_NORMAL,
    ACTION_ROUTINE,
    build_summary,
    recommended_action,
)
from lab_triage.core.context import PriorityLevel, PriorityScore, Severity, SeverityClassification


def _score(level):
    return PriorityScore(total_score=0.0, priority_level=level)


@pytest.mark.parametrize("markers, abnormal, critical, level, action", [
    (0, 0, 0, PriorityLevel.LOW, ACTION_NO_DATA),
    (3, 1, 1, PriorityLevel.HIGH, ACTION_CRITICAL),
    (3, 2, 0, PriorityLevel.HIGH, ACTION_HIGH),
    (3, 1, 0, PriorityLevel.MEDIUM, ACTION_MEDIUM),
    (3, 1, 0, PriorityLevel.LOW, ACTION_ROUTINE),
    (3, 0, 0, PriorityLevel.LOW, ACTION_NORMAL),
])
def test_recommended_action(markers, abnormal, critical, level, action):
    assert recommended_action(markers, abnormal, critical, _score(level)) == action


def test_build_summary_counts(make_result):
    """Test counts and highest severity"""
    results = [
        replace(make_result(raw_value=269.0), classification=SeverityClassification(
            severity=Severity.SEVERE, is_abnormal=True, is_critical_value=True)),
        replace(make_result(raw_value=170.0, system_code="triglycerides"), classification=SeverityClassification(
            severity=Severity.MILD, is_abnormal=True)),
        replace(make_result(raw_value=95.0, system_code="cholesterol_total"), classification=SeverityClassification(
            severity=Severity.NORMAL, is_abnormal=False)),
    ]
    summary = build_summary(results, [], _score(PriorityLevel.HIGH))

    assert summary.total_markers == 3
    assert summary.abnormal_count == 2
    assert summary.critical_count == 0
    assert summary.highest_severity == Severity.SEVERE
    assert summary.recommended_action_text == ACTION_HIGH


def test_build_summary_empty():
    summary = build_summary([], [], _score(PriorityLevel.LOW))

    assert summary.total_markers == 0
    assert summary.highest_severity == Severity.NORMAL
    assert summary.recommended_action_text == ACTION_NO_DATA
    assert summary.to_dict()["highestSeverity"] == "normal"

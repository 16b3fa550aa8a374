# ============================================================================
# FILE: tests/unit/test_marker_matcher.py
# ============================================================================
"""
Unit tests for canonical marker matching
"""

import pytest

from lab_triage.core.context import CanonicalMarker
from lab_triage.extractors.marker_matcher import MarkerMatcher, get_marker_matcher


@pytest.fixture
def matcher():
    return get_marker_matcher()


def test_lookup_exact_and_accented(matcher):
    """Test aliases resolve regardless of case and accents"""
    assert matcher.lookup("GLICEMIA EN AYUNO (BASAL)").system_code == "glucose_fasting"
    assert matcher.lookup("Triglicéridos").system_code == "triglycerides"
    assert matcher.lookup("got (a.s.t)").system_code == "ast"


def test_lookup_parenthetical_stripped(matcher):
    """Test the name without its parenthetical still resolves"""
    assert matcher.lookup("COLESTEROL LDL (CALCULO)").system_code == "cholesterol_ldl"
    assert matcher.lookup("H. TIROESTIMULANTE").system_code == "tsh"


def test_lookup_unknown(matcher):
    """Test unknown names and empty input"""
    assert matcher.lookup("EXAMEN INEXISTENTE") is None
    assert matcher.lookup("") is None


def test_shared_alias_uses_sample_type(matcher):
    """Test GLUCOSA resolves by section sample type"""
    assert matcher.lookup("GLUCOSA", "SUERO").system_code == "glucose_fasting"
    assert matcher.lookup("GLUCOSA", "ORINA").system_code == "urine_glucose"
    assert matcher.lookup("LEUCOCITOS", "ORINA").system_code == "urine_leukocytes"
    assert matcher.lookup("LEUCOCITOS", "SANGRE TOTAL + E.D.T.A.").system_code == "white_blood_cells"


def test_find_in_line_longest_alias(matcher):
    """Test the longest alias wins and the span covers closing punctuation"""
    line = "GLICEMIA EN AYUNO (BASAL)   269 (mg/dL) [*]   74 - 106"
    matches = matcher.find_in_line(line, offset=100)

    assert len(matches) == 1
    match = matches[0]
    assert match.marker.system_code == "glucose_fasting"
    assert match.start == 100
    assert line[match.start - 100:match.end - 100] == "GLICEMIA EN AYUNO (BASAL)"


def test_find_in_line_requires_column_start(matcher):
    """Test marker words inside free text are not names"""
    assert matcher.find_in_line("Muestra tomada para GLICEMIA de control") == []


def test_find_in_line_two_columns(matcher):
    """Test two markers on one row separated by a wide gap"""
    matches = matcher.find_in_line("EOSINOFILOS   3 (%)   BASOFILOS   1 (%)")

    assert [m.marker.system_code for m in matches] == ["eosinophils", "basophils"]


def test_no_match_inside_longer_word(matcher):
    """Test aliases do not match inside other words"""
    assert matcher.find_in_line("GOTERO   5") == []


def test_find_all_offsets(matcher):
    """Test offsets are relative to the whole text"""
    text = "CREATININA   0,91 (mg/dL)\nUREA   30 (mg/dL)"
    matches = matcher.find_all(text)

    assert [m.marker.system_code for m in matches] == ["creatinine", "urea"]
    assert text[matches[1].start:matches[1].end] == "UREA"


def test_lookup_table_is_read_only(matcher):
    """Test the alias table cannot be mutated"""
    with pytest.raises(TypeError):
        matcher.lookup_table["NUEVO"] = ()


def test_custom_marker_table():
    """Test a matcher built from an explicit marker list"""
    marker = CanonicalMarker(
        system_code="lactate", display_name="Lactato", category="other",
        aliases=("ACIDO LACTICO", "LACTATO"),
    )
    matcher = MarkerMatcher([marker])

    assert matcher.lookup("Ácido láctico") is marker
    assert matcher.find_in_line("LACTATO   2,1 (mmol/L)")[0].marker is marker

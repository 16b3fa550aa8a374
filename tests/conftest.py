# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.
"""

import pytest

from lab_triage.core.context import ExtractedResult, PatientContext, ReferenceRange, RangeKind, ResultKind
from lab_triage.core.pipeline import LabReportPipeline


@pytest.fixture
def sample_report_text():
    """Single-page serum report with one critical glucose"""
    return (
        "LABORATORIO CLINICO SAN JOSE\n"
        "Nombre: MARIA GONZALEZ PEREZ   RUT: 12.345.678-5\n"
        "Edad: 67 años   Sexo: Femenino\n"
        "Fecha de Recepción: 15/03/2024\n"
        "____________________________________________________________\n"
        "Tipo de Muestra : SUERO\n"
        "EXAMEN   RESULTADO   VALOR DE REFERENCIA   METODO\n"
        "GLICEMIA EN AYUNO (BASAL)   269 (mg/dL) [*]   74 - 106   Hexoquinasa\n"
        "COLESTEROL TOTAL   95 (mg/dL)   0 - 200\n"
        "CREATININA   0,91 (mg/dL)   0,5 - 1,1\n"
    )


@pytest.fixture
def multi_page_pages():
    """Two pages sharing a reprinted header, second page in whole blood"""
    page_one = (
        "LABORATORIO CLINICO SAN JOSE\n"
        "Nombre: MARIA GONZALEZ PEREZ   RUT: 12.345.678-5\n"
        "Fecha de Recepción: 15/03/2024   Página 1 de 2\n"
        "Tipo de Muestra : SUERO\n"
        "GLICEMIA EN AYUNO (BASAL)   269 (mg/dL) [*]   74 - 106   Hexoquinasa\n"
        "COLESTEROL TOTAL   95 (mg/dL)   0 - 200\n"
    )
    page_two = (
        "LABORATORIO CLINICO SAN JOSE\n"
        "Nombre: MARIA GONZALEZ PEREZ   RUT: 12.345.678-5\n"
        "Fecha de Recepción: 15/03/2024   Página 2 de 2\n"
        "____________________________________________________________\n"
        "Tipo de Muestra : SANGRE TOTAL + E.D.T.A.\n"
        "HEMOGLOBINA GLICADA A1C   7,2 (%) [*]   4 - 6\n"
        "HEMOGLOBINA   13,5 (g/dL)   12 - 16\n"
    )
    return [page_one, page_two]


@pytest.fixture
def scenario_c_text():
    """Four markers: glucose critical, triglycerides mildly high, two normal"""
    return (
        "RUT: 12.345.678-5\n"
        "GLICEMIA EN AYUNO (BASAL)   269 (mg/dL) [*]   74 - 106\n"
        "TRIGLICERIDOS   170 (mg/dL) [*]   0 - 150\n"
        "COLESTEROL TOTAL   95 (mg/dL)   0 - 200\n"
        "CREATININA   0,91 (mg/dL)   0,5 - 1,1\n"
    )


@pytest.fixture
def pipeline():
    """Sequential pipeline with default reference tables"""
    return LabReportPipeline()


@pytest.fixture
def elderly_patient():
    return PatientContext(age=85, sex="F")


@pytest.fixture
def make_result():
    """Factory for ExtractedResult with sensible defaults"""
    def _make(
        exam_name="GLICEMIA EN AYUNO (BASAL)",
        raw_value=100.0,
        system_code="glucose_fasting",
        confidence=0.95,
        unit="mg/dL",
        sample_type="SUERO",
        position=0,
        strategy="column_aligned",
        kind=ResultKind.NUMERIC,
        flagged=False,
        reference_range=None,
    ):
        return ExtractedResult(
            exam_name=exam_name,
            raw_value=raw_value,
            unit=unit,
            sample_type=sample_type,
            has_abnormal_marker=flagged,
            confidence=confidence,
            source_position=position,
            result_kind=kind,
            strategy=strategy,
            system_code=system_code,
            reference_range=reference_range,
        )
    return _make


@pytest.fixture
def make_range():
    """Factory for a closed ReferenceRange"""
    def _make(low, high, raw_text=None):
        return ReferenceRange(
            kind=RangeKind.RANGE,
            min_value=low,
            max_value=high,
            raw_text=raw_text or f"{low:g} - {high:g}",
            confidence=85.0,
        )
    return _make

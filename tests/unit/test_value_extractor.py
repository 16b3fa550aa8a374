# ============================================================================
# FILE: tests/unit/test_value_extractor.py
# ============================================================================
"""
Unit tests for value extraction and reference range attachment
"""

from lab_triage.extractors.value_extractor import ValueExtractor
from lab_triage.utils.text_normalizer import TextNormalizer


def normalize(text):
    return TextNormalizer().normalize(text)


def test_extract_sample_report(sample_report_text):
    """Test every marker row of the sample report yields a candidate"""
    candidates = ValueExtractor().extract(normalize(sample_report_text))

    codes = {c.system_code for c in candidates}
    assert {"glucose_fasting", "cholesterol_total", "creatinine"} <= codes


def test_parallel_matches_sequential(sample_report_text):
    """Test running strategies on a thread pool gives the same candidates"""
    document = normalize(sample_report_text)

    sequential = ValueExtractor(parallel=False).extract(document)
    parallel = ValueExtractor(parallel=True, max_workers=4).extract(document)

    assert parallel == sequential


def test_sample_type_carried_on_results(multi_page_pages):
    """Test results carry the sample type of their section"""
    document = TextNormalizer().normalize("\n\n".join(multi_page_pages), multi_page_pages)
    candidates = ValueExtractor().extract(document)

    by_code = {c.system_code: c for c in candidates}
    assert by_code["glucose_fasting"].sample_type == "SUERO"
    assert by_code["hba1c"].sample_type == "SANGRE TOTAL + E.D.T.A."


def test_attach_range_from_row(sample_report_text):
    """Test the range printed in the row is attached"""
    document = normalize(sample_report_text)
    extractor = ValueExtractor()
    results = extractor.attach_reference_ranges(extractor.extract(document), document)

    glucose = next(r for r in results if r.system_code == "glucose_fasting")
    assert glucose.reference_range.min_value == 74.0
    assert glucose.reference_range.max_value == 106.0


def test_attach_range_by_proximity():
    """Test a range printed on the following line is attached"""
    document = normalize("GLICEMIA   95 (mg/dL)\n   74 - 106\n")
    extractor = ValueExtractor()
    results = extractor.attach_reference_ranges(extractor.extract(document), document)

    assert results[0].reference_range.min_value == 74.0


def test_proximity_stops_at_next_marker():
    """Test a range belonging to the next marker is not borrowed"""
    document = normalize("GLICEMIA   95 (mg/dL)\nCOLESTEROL TOTAL   180 (mg/dL)   0 - 200\n")
    extractor = ValueExtractor()
    results = extractor.attach_reference_ranges(extractor.extract(document), document)

    by_code = {r.system_code: r for r in results}
    assert by_code["glucose_fasting"].reference_range is None
    assert by_code["cholesterol_total"].reference_range.max_value == 200.0


def test_gender_range_selected_by_sex():
    """Test the patient's sex picks between gender-specific ranges"""
    document = normalize("HEMOGLOBINA   13,5 (g/dL)\n   H: 13 - 17   M: 12 - 16\n")
    extractor = ValueExtractor()
    candidates = extractor.extract(document)

    female = extractor.attach_reference_ranges(candidates, document, sex="F")[0]
    male = extractor.attach_reference_ranges(candidates, document, sex="M")[0]
    assert female.reference_range.min_value == 12.0
    assert male.reference_range.min_value == 13.0


def test_gender_only_range_left_unattached_without_sex():
    """Test proximity search does not fall back to the male range when sex is unknown"""
    document = normalize("HEMOGLOBINA   12,5 (g/dL)\n   H: 13 - 17   M: 12 - 16\n")
    extractor = ValueExtractor()
    hemoglobin = extractor.attach_reference_ranges(extractor.extract(document), document)[0]

    assert hemoglobin.reference_range is None
    assert hemoglobin.range_needs_sex is True


def test_ungendered_range_still_attached_without_sex():
    """Test a plain range is attached as before when sex is unknown"""
    document = normalize("HEMOGLOBINA   12,5 (g/dL)   12 - 16\n")
    extractor = ValueExtractor()
    hemoglobin = extractor.attach_reference_ranges(extractor.extract(document), document)[0]

    assert hemoglobin.reference_range.min_value == 12.0
    assert hemoglobin.range_needs_sex is False


def test_non_numeric_results_get_no_range():
    """Test qualitative results are left without a parsed range"""
    document = normalize("Tipo de Muestra : ORINA\nNITRITOS   Negativo   Negativo\n")
    extractor = ValueExtractor()
    results = extractor.attach_reference_ranges(extractor.extract(document), document)

    nitrites = next(r for r in results if r.system_code == "urine_nitrites")
    assert nitrites.reference_range is None
    assert nitrites.reference_range_text == "Negativo"

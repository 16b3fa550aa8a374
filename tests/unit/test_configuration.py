# ============================================================================
# FILE: tests/unit/test_configuration.py
# ============================================================================
"""
Unit tests for settings, reference table loading and logging helpers
"""

import json
import logging

import pytest

from lab_triage.config import LoggingSettings, ScoringSettings, ThresholdSettings, base_settings
from lab_triage.constants import (
    get_clinical_weight,
    get_critical_threshold,
    get_severity_override,
    load_canonical_markers,
    load_critical_thresholds,
    load_severity_overrides,
)
from lab_triage.core.context import Severity
from lab_triage.utils.exceptions import ConfigurationError
from lab_triage.utils.logging import JsonFormatter, LogContext, RutRedactionFilter, log_performance


class TestSettings:
    """Tests for pydantic settings"""

    def test_scoring_defaults(self):
        settings = ScoringSettings()
        assert settings.SEVERE_POINTS == 50.0
        assert settings.HIGH_PRIORITY_THRESHOLD == 80.0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("LAB_TRIAGE_SCORING_CRITICAL_VALUE_BONUS", "40")
        assert ScoringSettings().CRITICAL_VALUE_BONUS == 40.0

    def test_priority_thresholds_must_be_ordered(self):
        with pytest.raises(ValueError):
            ScoringSettings(MEDIUM_PRIORITY_THRESHOLD=90.0, HIGH_PRIORITY_THRESHOLD=80.0)

    def test_review_thresholds_must_be_ordered(self):
        with pytest.raises(ValueError):
            ThresholdSettings(MANUAL_REVIEW_THRESHOLD=90.0, AUTO_APPROVE_THRESHOLD=85.0)

    def test_log_level_validated(self):
        assert LoggingSettings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"
        with pytest.raises(ValueError):
            LoggingSettings(LOG_LEVEL="LOUD")

    def test_knowledge_files_exist(self):
        for name in ("canonical_markers.json", "critical_thresholds.json", "severity_overrides.json"):
            assert base_settings.knowledge_file(name).exists()


class TestReferenceTables:
    """Tests for the JSON reference tables"""

    def test_default_tables_load(self):
        markers = load_canonical_markers()
        codes = {m.system_code for m in markers}

        assert {"glucose_fasting", "hba1c", "creatinine", "hemoglobin"} <= codes
        assert all(m.clinical_priority_weight >= 1.0 for m in markers)

    def test_lookup_helpers(self):
        assert get_clinical_weight("hba1c") == 1.8
        assert get_clinical_weight(None) == 1.0
        assert get_critical_threshold("glucose_post_load").high == 250
        assert get_severity_override("tsh").grade(0.15) == Severity.SEVERE
        assert get_severity_override("creatinine") is None

    def test_missing_table(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_critical_thresholds(tmp_path / "missing.json")

    def test_corrupt_table(self, tmp_path):
        path = tmp_path / "critical_thresholds.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_critical_thresholds(path)

    def test_threshold_without_cutoff(self, tmp_path):
        path = tmp_path / "critical_thresholds.json"
        path.write_text(json.dumps({"thresholds": [{
            "marker_type": "glucose",
            "unit": "mg/dL",
            "urgency": "immediate",
            "description": "Glicemia crítica",
            "clinical_significance": "",
        }]}), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_critical_thresholds(path)

    def test_marker_weight_below_one(self, tmp_path):
        path = tmp_path / "canonical_markers.json"
        path.write_text(json.dumps({"markers": [
            {"code": "glucose_fasting", "weight": 0.5, "aliases": ["GLICEMIA"]},
        ]}), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_canonical_markers(path)

    def test_override_rules_in_order(self, tmp_path):
        path = tmp_path / "severity_overrides.json"
        path.write_text(json.dumps({"overrides": [{
            "marker_type": "potassium",
            "rules": [{"above": 6.5, "severity": "severe"}, {"below": 3.0, "severity": "moderate"}],
        }]}), encoding="utf-8")

        override = load_severity_overrides(path)["potassium"]
        assert override.grade(7.0) == Severity.SEVERE
        assert override.grade(2.8) == Severity.MODERATE
        assert override.grade(5.6) == Severity.MILD


class TestLoggingHelpers:
    """Tests for logging utilities"""

    def test_json_formatter_includes_context(self):
        logger = logging.getLogger("lab_triage.tests")
        with LogContext(document_id="informe.pdf"):
            record = logger.makeRecord("lab_triage.tests", logging.INFO, __file__, 1, "hola", (), None)

        data = json.loads(JsonFormatter().format(record))
        assert data["message"] == "hola"
        assert data["level"] == "INFO"
        assert data["document_id"] == "informe.pdf"

    def test_log_context_restores_factory(self):
        before = logging.getLogRecordFactory()
        with LogContext(document_id="x"):
            assert logging.getLogRecordFactory() is not before
        assert logging.getLogRecordFactory() is before

    def test_log_performance_reraises(self, caplog):
        logger = logging.getLogger("lab_triage.tests")

        @log_performance(logger, "explode")
        def explode():
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="lab_triage.tests"):
            with pytest.raises(RuntimeError):
                explode()

        assert any("explode failed" in r.getMessage() for r in caplog.records)

    def test_rut_redacted_from_messages(self):
        """Test a RUT in a log message is masked before formatting"""
        logger = logging.getLogger("lab_triage.tests")
        record = logger.makeRecord(
            "lab_triage.tests", logging.INFO, __file__, 1, "Paciente %s procesado", ("12.345.678-5",), None,
        )

        assert RutRedactionFilter().filter(record) is True
        assert record.getMessage() == "Paciente 1*******-5 procesado"

    def test_message_without_rut_untouched(self):
        logger = logging.getLogger("lab_triage.tests")
        record = logger.makeRecord("lab_triage.tests", logging.INFO, __file__, 1, "Glicemia %d", (269,), None)

        RutRedactionFilter().filter(record)
        assert record.getMessage() == "Glicemia 269"

# ============================================================================
# src/lab_triage/config/thresholds_config.py
# ============================================================================
"""
Confidence Thresholds
- Extraction confidence floor (noise filter)
- Identity acceptance
- Manual review routing
- Reference range proximity matching
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ThresholdSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LAB_TRIAGE_THRESHOLD_")

    MIN_EXTRACTION_CONFIDENCE: float = Field(
        default=0.50,
        ge=0.0, le=1.0,
        description="Candidates below this confidence are dropped by the noise filter"
    )
    RESULT_REVIEW_CONFIDENCE: float = Field(
        default=0.70,
        ge=0.0, le=1.0,
        description="Accepted results below this confidence are flagged for manual review"
    )
    IDENTITY_ACCEPT_CONFIDENCE: float = Field(
        default=70.0,
        ge=0.0, le=100.0,
        description="A valid RUT candidate above this confidence is preferred as best match"
    )
    AUTO_APPROVE_THRESHOLD: float = Field(
        default=85.0,
        ge=0.0, le=100.0,
        description="Document confidence at or above this is approved without review"
    )
    MANUAL_REVIEW_THRESHOLD: float = Field(
        default=70.0,
        ge=0.0, le=100.0,
        description="Document confidence at or above this goes to manual review, below is rejected"
    )
    LOW_CONFIDENCE_WARNING: float = Field(
        default=50.0,
        ge=0.0, le=100.0,
        description="Document confidence below this adds a low-confidence warning"
    )
    REFERENCE_RANGE_MAX_DISTANCE: int = Field(
        default=200,
        ge=0,
        description="Maximum characters between a value and a free-floating reference range"
    )

    @model_validator(mode="after")
    def check_review_order(self):
        if self.MANUAL_REVIEW_THRESHOLD > self.AUTO_APPROVE_THRESHOLD:
            raise ValueError("MANUAL_REVIEW_THRESHOLD must not exceed AUTO_APPROVE_THRESHOLD")
        return self


threshold_settings = ThresholdSettings()

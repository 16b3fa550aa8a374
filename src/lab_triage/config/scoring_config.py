# ============================================================================
# src/lab_triage/config/scoring_config.py
# ============================================================================
"""
Priority Scoring Settings
- Points per severity tier
- Critical value and multiplicity bonuses
- Age adjustment bands
- Priority level cutoffs
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoringSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LAB_TRIAGE_SCORING_")

    MILD_POINTS: float = Field(default=10.0, ge=0.0, description="Score for a mild abnormality")
    MODERATE_POINTS: float = Field(default=25.0, ge=0.0, description="Score for a moderate abnormality")
    SEVERE_POINTS: float = Field(default=50.0, ge=0.0, description="Score for a severe abnormality")

    CRITICAL_VALUE_BONUS: float = Field(
        default=30.0,
        ge=0.0,
        description="Flat addend per marker that crossed a critical threshold"
    )
    MULTIPLICITY_STEP: float = Field(
        default=5.0,
        ge=0.0,
        description="Bonus per abnormal marker beyond the first"
    )
    MULTIPLICITY_CAP: float = Field(
        default=20.0,
        ge=0.0,
        description="Maximum multiplicity bonus"
    )

    # Age bands: factor applies when age <= band max
    AGE_BAND_YOUNG_MAX: int = Field(default=40, ge=0, description="Upper age of the no-adjustment band")
    AGE_BAND_ADULT_MAX: int = Field(default=65, ge=0, description="Upper age of the adult band")
    AGE_BAND_SENIOR_MAX: int = Field(default=80, ge=0, description="Upper age of the senior band")
    AGE_FACTOR_ADULT: float = Field(default=1.2, ge=1.0, description="Score multiplier for ages 41-65")
    AGE_FACTOR_SENIOR: float = Field(default=1.4, ge=1.0, description="Score multiplier for ages 66-80")
    AGE_FACTOR_ELDERLY: float = Field(default=1.6, ge=1.0, description="Score multiplier for ages 81+")

    HIGH_PRIORITY_THRESHOLD: float = Field(
        default=80.0,
        ge=0.0,
        description="Total score at or above this is HIGH priority"
    )
    MEDIUM_PRIORITY_THRESHOLD: float = Field(
        default=30.0,
        ge=0.0,
        description="Total score at or above this is MEDIUM priority"
    )

    @model_validator(mode="after")
    def check_ordering(self):
        if self.MEDIUM_PRIORITY_THRESHOLD >= self.HIGH_PRIORITY_THRESHOLD:
            raise ValueError("MEDIUM_PRIORITY_THRESHOLD must be lower than HIGH_PRIORITY_THRESHOLD")
        if not (self.MILD_POINTS <= self.MODERATE_POINTS <= self.SEVERE_POINTS):
            raise ValueError("Severity points must not decrease with severity")
        if not (self.AGE_BAND_YOUNG_MAX < self.AGE_BAND_ADULT_MAX < self.AGE_BAND_SENIOR_MAX):
            raise ValueError("Age bands must be strictly increasing")
        return self


scoring_settings = ScoringSettings()

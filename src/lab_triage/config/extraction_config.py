# ============================================================================
# src/lab_triage/config/extraction_config.py
# ============================================================================
"""
Extraction Settings
- Strategy execution (sequential or thread pool)
- Value sanity bounds
- Context snippet width
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExtractionSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LAB_TRIAGE_EXTRACTION_")

    PARALLEL_STRATEGIES: bool = Field(
        default=False,
        description="Run value extraction strategies concurrently in a thread pool"
    )
    MAX_WORKERS: Optional[int] = Field(
        default=None,
        ge=1,
        description="Thread pool size for strategies and batch processing (None = executor default)"
    )
    MAX_PLAUSIBLE_VALUE: float = Field(
        default=100000.0,
        gt=0.0,
        description="Numeric values above this are discarded at the source"
    )
    CONTEXT_SNIPPET_WIDTH: int = Field(
        default=80,
        ge=0,
        description="Characters of surrounding text kept with each extracted result"
    )


extraction_settings = ExtractionSettings()

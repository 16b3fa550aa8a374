# ============================================================================
# src/lab_triage/config/base_config.py
# ============================================================================
"""
Base Configuration
- Project root
- Knowledge base directory (marker aliases, critical thresholds, overrides)
- Deployment environment
"""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseSettingsConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LAB_TRIAGE_")

    # Root package directory
    PACKAGE_ROOT: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent,
        description="Root directory of the lab_triage package"
    )

    # Versioned reference tables, editable without a code release
    KNOWLEDGE_DIR: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent / "knowledge",
        description="Directory holding canonical_markers.json, critical_thresholds.json and severity_overrides.json"
    )

    ENVIRONMENT: str = Field(
        default="development",
        description="Deployment environment name (development, staging, production)"
    )

    def knowledge_file(self, name: str) -> Path:
        """Get the path of a reference table inside the knowledge directory"""
        return Path(self.KNOWLEDGE_DIR) / name


# Global instance
base_settings = BaseSettingsConfig()

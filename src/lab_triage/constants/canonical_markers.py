# ============================================================================
# src/lab_triage/constants/canonical_markers.py
# ============================================================================
"""
Canonical Marker Vocabulary
- Loaded from knowledge/canonical_markers.json
- Surface aliases (Spanish lab names) -> CanonicalMarker
- Immutable once loaded; reload_canonical_markers() re-reads the file
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from ..config import base_settings
from ..core.context.enums import ResultKind
from ..core.context.reference import CanonicalMarker
from ..utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

MARKERS_FILE = "canonical_markers.json"


def _read_json(path: Path) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Reference table not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Reference table is not valid JSON: {path} ({e})") from e


def _build_marker(entry: dict) -> CanonicalMarker:
    try:
        plausible = entry.get("plausible") or (None, None)
        weight = float(entry.get("weight", 1.0))
        if weight < 1.0:
            raise ConfigurationError(
                f"Marker {entry['code']}: clinical weight must be >= 1.0, got {weight}"
            )
        return CanonicalMarker(
            system_code=entry["code"],
            display_name=entry.get("name", entry["code"]),
            category=entry.get("category", "other"),
            clinical_priority_weight=weight,
            expected_unit=entry.get("unit"),
            aliases=tuple(entry["aliases"]),
            normal_range_text=entry.get("normal_range"),
            result_kind=ResultKind(entry.get("kind", "numeric")),
            calculated=bool(entry.get("calculated", False)),
            sample_types=tuple(entry.get("sample_types", ())),
            plausible_min=plausible[0],
            plausible_max=plausible[1],
        )
    except (KeyError, ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid marker entry {entry!r}: {e}") from e


@lru_cache(maxsize=None)
def load_canonical_markers(path: Optional[Path] = None) -> Tuple[CanonicalMarker, ...]:
    """
    Load the canonical marker table.

    Args:
        path: Override file location (defaults to the knowledge directory)

    Returns:
        Tuple of CanonicalMarker in file order

    Raises:
        ConfigurationError: file missing, corrupt, or entries malformed
    """
    path = Path(path) if path else base_settings.knowledge_file(MARKERS_FILE)
    data = _read_json(path)

    entries = data.get("markers") if isinstance(data, dict) else None
    if not entries:
        raise ConfigurationError(f"No markers defined in {path}")

    markers = tuple(_build_marker(entry) for entry in entries)

    codes = [m.system_code for m in markers]
    duplicates = {c for c in codes if codes.count(c) > 1}
    if duplicates:
        raise ConfigurationError(f"Duplicate marker codes in {path}: {sorted(duplicates)}")

    logger.info(f"Loaded {len(markers)} canonical markers (version {data.get('version', 'unknown')})")
    return markers


@lru_cache(maxsize=None)
def get_markers_by_code(path: Optional[Path] = None) -> Mapping[str, CanonicalMarker]:
    """system_code -> CanonicalMarker (read-only)"""
    return MappingProxyType({m.system_code: m for m in load_canonical_markers(path)})


def get_marker(system_code: str) -> Optional[CanonicalMarker]:
    """Look up a canonical marker by its system code."""
    return get_markers_by_code().get(system_code)


def get_clinical_weight(system_code: Optional[str]) -> float:
    """Clinical priority weight for a marker code; 1.0 when unknown."""
    if not system_code:
        return 1.0
    marker = get_marker(system_code)
    return marker.clinical_priority_weight if marker else 1.0


def get_marker_weights() -> Dict[str, float]:
    return {code: m.clinical_priority_weight for code, m in get_markers_by_code().items()}


def reload_canonical_markers() -> None:
    """Drop cached tables so the next access re-reads the JSON file."""
    load_canonical_markers.cache_clear()
    get_markers_by_code.cache_clear()

# ============================================================================
# src/lab_triage/extractors/strategies/__init__.py
# ============================================================================
"""
Value extraction strategies, in the fixed order their candidates are merged.
"""

from .base import ExtractionStrategy, MatchContext, ParsedValue, iter_match_contexts, split_range_and_method
from .column_aligned import ColumnAlignedStrategy
from .embedded import EmbeddedStrategy
from .qualitative import QualitativeStrategy, QUALITATIVE_VALUES
from .microscopy import MicroscopyStrategy
from .multiline import MultiLineStrategy
from .calculated import CalculatedStrategy

DEFAULT_STRATEGIES = (
    ColumnAlignedStrategy,
    EmbeddedStrategy,
    QualitativeStrategy,
    MicroscopyStrategy,
    MultiLineStrategy,
    CalculatedStrategy,
)


def build_default_strategies(**kwargs):
    """Fresh instances of every strategy, sharing the given options."""
    return [strategy_cls(**kwargs) for strategy_cls in DEFAULT_STRATEGIES]

"""Actor profiling and strategy aggregation."""

from tipsheet.analysis.aggregator import AggregationResult, StrategyAggregator
from tipsheet.analysis.extractor import PatternExtractor
from tipsheet.analysis.profile import ProfileBuilder, calculate_profitability
from tipsheet.analysis.sections import CommonPatterns, PatternAnalysis

__all__ = [
    "AggregationResult",
    "StrategyAggregator",
    "PatternExtractor",
    "ProfileBuilder",
    "calculate_profitability",
    "CommonPatterns",
    "PatternAnalysis",
]

"""External data sources the engine reads from."""

from tipsheet.sources.history import DatabaseHistorySource, HistorySource, StaticHistorySource
from tipsheet.sources.races import RaceContext, RaceDetailsSource, StaticRaceDetailsSource

__all__ = [
    "DatabaseHistorySource",
    "HistorySource",
    "StaticHistorySource",
    "RaceContext",
    "RaceDetailsSource",
    "StaticRaceDetailsSource",
]

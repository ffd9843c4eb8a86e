"""Live race details used for context adjustment."""

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol


@dataclass(frozen=True)
class RaceContext:
    """Conditions for a specific live race."""

    venue: str
    surface: Optional[str] = None
    weather: Optional[str] = None
    condition: Optional[str] = None


class RaceDetailsSource(Protocol):
    async def get_race(self, race_id: str) -> Optional[RaceContext]: ...


class StaticRaceDetailsSource:
    """In-memory race details, keyed by race id."""

    def __init__(self, races: Optional[Mapping[str, RaceContext]] = None):
        self._races = dict(races or {})

    def set_race(self, race_id: str, race: RaceContext) -> None:
        self._races[race_id] = race

    async def get_race(self, race_id: str) -> Optional[RaceContext]:
        return self._races.get(race_id)

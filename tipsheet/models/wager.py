"""Settled wager records, as stored in the ledger table and passed around in memory."""

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tipsheet.config import utc_now
from tipsheet.models.database import Base


class WagerResult(str, Enum):
    """Outcome of a settled wager."""

    WON = "won"
    LOST = "lost"


@dataclass(frozen=True)
class WagerRecord:
    """One settled wager in an actor's history."""

    venue: str
    category: str
    amount: float
    odds: float
    result: str
    timestamp: Optional[datetime] = None
    race_id: Optional[str] = None
    selection_id: Optional[str] = None
    reference: Optional[str] = None

    @property
    def won(self) -> bool:
        return self.result == WagerResult.WON.value

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for JSON serialisation (prompt building, API output)."""
        data = asdict(self)
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp.isoformat()
        return data


class Wager(Base):
    """Ledger row for a single settled wager."""

    __tablename__ = "wagers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[str] = mapped_column(String, index=True)
    venue: Mapped[str] = mapped_column(String)
    category: Mapped[str] = mapped_column(String)  # bet type: win / place / show / exacta ...
    amount: Mapped[float] = mapped_column(Float)
    odds: Mapped[float] = mapped_column(Float)
    result: Mapped[Optional[str]] = mapped_column(String, nullable=True)  # None until settled
    race_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    selection_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    placed_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    def to_record(self) -> WagerRecord:
        return WagerRecord(
            venue=self.venue,
            category=self.category,
            amount=self.amount,
            odds=self.odds,
            result=self.result or WagerResult.LOST.value,
            timestamp=self.placed_at,
            race_id=self.race_id,
            selection_id=self.selection_id,
            reference=self.reference,
        )

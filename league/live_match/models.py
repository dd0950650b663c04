"""
Data models for the live match core.

Enums for statuses, event types and sides, plus the small value objects
returned by the lifecycle and ledger functions.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from enum import Enum


class MatchStatus(str, Enum):
    """Lifecycle states of a match."""
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def allows_events(self) -> bool:
        """Scores and events may only exist on live or completed matches."""
        return self not in SCORELESS_STATUSES


TERMINAL_STATUSES = frozenset({
    MatchStatus.COMPLETED,
    MatchStatus.POSTPONED,
    MatchStatus.CANCELLED,
})

SCORELESS_STATUSES = frozenset({
    MatchStatus.SCHEDULED,
    MatchStatus.POSTPONED,
    MatchStatus.CANCELLED,
})


class EventType(str, Enum):
    """Types of match events."""
    GOAL = "goal"
    ASSIST = "assist"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"
    SUBSTITUTION = "substitution"
    OTHER = "other"


class Side(str, Enum):
    """Which team an event or score change belongs to."""
    HOME = "home"
    AWAY = "away"


class Operation(str, Enum):
    """Operations an operator can request on a match."""
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    SCORE = "score"
    EVENT = "event"
    UNDO = "undo"
    END = "end"
    POSTPONE = "postpone"
    CANCEL = "cancel"
    SYNC = "sync"


@dataclass(frozen=True)
class ScoreLine:
    """Home/away score pair."""
    home: int = 0
    away: int = 0

    def for_side(self, side: Side) -> int:
        return self.home if side == Side.HOME else self.away

    @property
    def score_display(self) -> str:
        """Format score as 'X - Y'."""
        return f"{self.home} - {self.away}"


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a transition check. Rejections carry the reason to show."""
    accepted: bool
    reason: Optional[str] = None
    field: Optional[str] = None
    conflict: bool = False  # rejected because the match is already finished

    @classmethod
    def accept(cls) -> "TransitionResult":
        return cls(accepted=True)

    @classmethod
    def reject(
        cls, reason: str, field: Optional[str] = None, conflict: bool = False
    ) -> "TransitionResult":
        return cls(accepted=False, reason=reason, field=field, conflict=conflict)


@dataclass
class ValidationReport:
    """
    Result of validating a complete match payload.

    Errors block the write; warnings are returned to the caller alongside
    the saved match.
    """
    errors: List[Dict[str, str]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, field_name: str, message: str) -> None:
        self.errors.append({"field": field_name, "message": message})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }

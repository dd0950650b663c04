"""
Live match core: lifecycle state machine, event ledger and match clock.

The HTTP-facing LiveMatchService lives in league.live_match.service and is
imported from there directly (it depends on league.crud).
"""
from .models import (
    MatchStatus,
    EventType,
    Side,
    Operation,
    ScoreLine,
    TransitionResult,
    ValidationReport,
)
from .clock import (
    Clock,
    SystemClock,
    FixedClock,
    MatchClock,
    get_clock,
)
from .lifecycle import (
    validate_transition,
    ensure_transition,
    check_operation,
    apply_score_mutation,
    transition,
)
from .ledger import (
    append_event,
    undo_last,
    recompute_score_from_ledger,
    check_ledger_consistency,
)

__all__ = [
    # Models
    "MatchStatus",
    "EventType",
    "Side",
    "Operation",
    "ScoreLine",
    "TransitionResult",
    "ValidationReport",
    # Clock
    "Clock",
    "SystemClock",
    "FixedClock",
    "MatchClock",
    "get_clock",
    # Lifecycle
    "validate_transition",
    "ensure_transition",
    "check_operation",
    "apply_score_mutation",
    "transition",
    # Ledger
    "append_event",
    "undo_last",
    "recompute_score_from_ledger",
    "check_ledger_consistency",
]

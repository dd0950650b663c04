"""
Match lifecycle state machine.

All status-dependent rules live in two tables:

- OPERATION_RULES: (status, operation) -> allowed, or the error to raise
- ALLOWED_TRANSITIONS: status -> statuses it may move to

plus the date windows checked by validate_transition(). Nothing here
touches the database; callers pass in ORM Match objects (or anything with
the same attributes) and persist them afterwards.
"""
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Optional, Tuple, Type
import logging

from config.settings import settings
from league.errors import ConflictError, LeagueError, ValidationError
from league.utils.helpers import safe_int

from .clock import MatchClock
from .models import (
    MatchStatus,
    Operation,
    Side,
    TransitionResult,
    TERMINAL_STATUSES,
)

logger = logging.getLogger("live_match.lifecycle")


# Rule values: None means allowed, otherwise (error class, reason template).
Rule = Optional[Tuple[Type[LeagueError], str]]

_NOT_LIVE = (ValidationError, "Match is not live ({status})")
_FINISHED = (ConflictError, "Match is {status}; no further changes are allowed")

OPERATION_RULES: Dict[Tuple[MatchStatus, Operation], Rule] = {}

for _op in Operation:
    OPERATION_RULES[(MatchStatus.SCHEDULED, _op)] = _NOT_LIVE
    OPERATION_RULES[(MatchStatus.LIVE, _op)] = None
    for _status in TERMINAL_STATUSES:
        OPERATION_RULES[(_status, _op)] = _FINISHED

OPERATION_RULES.update({
    (MatchStatus.SCHEDULED, Operation.START): None,
    (MatchStatus.SCHEDULED, Operation.POSTPONE): None,
    (MatchStatus.SCHEDULED, Operation.CANCEL): None,
    (MatchStatus.LIVE, Operation.START): (ValidationError, "Match cannot be started: it is already live"),
})

ALLOWED_TRANSITIONS: Dict[MatchStatus, FrozenSet[MatchStatus]] = {
    MatchStatus.SCHEDULED: frozenset({
        MatchStatus.LIVE,
        MatchStatus.COMPLETED,  # result entered without live scoring
        MatchStatus.POSTPONED,
        MatchStatus.CANCELLED,
    }),
    MatchStatus.LIVE: frozenset({
        MatchStatus.LIVE,  # pause/resume
        MatchStatus.COMPLETED,
        MatchStatus.POSTPONED,
        MatchStatus.CANCELLED,
    }),
    MatchStatus.POSTPONED: frozenset({MatchStatus.SCHEDULED}),  # re-scheduled
    MatchStatus.COMPLETED: frozenset(),
    MatchStatus.CANCELLED: frozenset(),
}

OPERATION_TARGETS: Dict[Operation, MatchStatus] = {
    Operation.START: MatchStatus.LIVE,
    Operation.END: MatchStatus.COMPLETED,
    Operation.POSTPONE: MatchStatus.POSTPONED,
    Operation.CANCEL: MatchStatus.CANCELLED,
}


def parse_status(value) -> MatchStatus:
    """Convert a stored/requested status string to MatchStatus."""
    try:
        return MatchStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid match status: {value}", field="status")


def check_operation(status, operation: Operation) -> None:
    """
    Raise the mapped error if `operation` is not permitted in `status`.

    Terminal statuses raise ConflictError, non-live ones ValidationError.
    """
    status = parse_status(status)
    rule = OPERATION_RULES[(status, operation)]
    if rule is None:
        return
    error_cls, template = rule
    raise error_cls(template.format(status=status.value), field="status")


def check_match_date(
    target: MatchStatus,
    date: datetime,
    now: datetime,
) -> TransitionResult:
    """Date window for a match entering (or saved in) `target` status."""
    if date is None:
        return TransitionResult.reject("Match date is required", field="match_date")

    difference = date - now

    if target == MatchStatus.SCHEDULED:
        if date < now:
            return TransitionResult.reject(
                "Scheduled match date cannot be in the past", field="match_date"
            )
    elif target == MatchStatus.LIVE:
        if abs(difference) > timedelta(hours=settings.live_window_hours):
            return TransitionResult.reject(
                f"Live match date should be within {settings.live_window_hours} hours of current time",
                field="match_date",
            )
    elif target == MatchStatus.COMPLETED:
        if difference > timedelta(hours=settings.completed_future_hours):
            return TransitionResult.reject(
                f"Completed match date cannot be more than {settings.completed_future_hours} hours in the future",
                field="match_date",
            )
    # postponed and cancelled matches may carry any date

    return TransitionResult.accept()


def validate_transition(current, target, date: datetime, now: datetime) -> TransitionResult:
    """
    Check whether a match may move from `current` to `target`.

    Never mutates anything. Moves out of a terminal status are flagged as
    conflicts so callers can answer 409 rather than 400.
    """
    current = parse_status(current)
    target = parse_status(target)

    if target not in ALLOWED_TRANSITIONS[current]:
        if current in TERMINAL_STATUSES:
            return TransitionResult.reject(
                f"Match is {current.value}; it cannot become {target.value}",
                field="status",
                conflict=True,
            )
        return TransitionResult.reject(
            f"Match cannot go from {current.value} to {target.value}",
            field="status",
        )

    if current == target:
        return TransitionResult.accept()

    return check_match_date(target, date, now)


def ensure_transition(current, target, date: datetime, now: datetime) -> None:
    """validate_transition() that raises ConflictError/ValidationError on rejection."""
    result = validate_transition(current, target, date, now)
    if result.accepted:
        return
    error_cls = ConflictError if result.conflict else ValidationError
    raise error_cls(result.reason, field=result.field)


def apply_score_mutation(match, side, delta: int) -> int:
    """
    Change one side's score by `delta` while the match is live.

    Returns the new score for that side. Results are capped at the maximum
    score; a change that would go below zero leaves the score untouched so
    repeated undos are harmless.
    """
    check_operation(match.status, Operation.SCORE)
    side = Side(side)
    attr = "home_score" if side == Side.HOME else "away_score"
    current = safe_int(getattr(match, attr))
    updated = current + delta

    if updated < 0:
        return current

    updated = min(updated, settings.max_score)
    setattr(match, attr, updated)
    return updated


def _reset_scoreboard(match) -> None:
    match.home_score = 0
    match.away_score = 0
    match.events = []


def transition(match, target, now: datetime) -> MatchStatus:
    """
    Validate and enact a status change on `match`.

    Side effects per target:
    - live: scores zeroed, ledger emptied, clock restarted at minute 0
    - completed: clock stopped
    - postponed/cancelled: clock stopped, scores and events cleared
    - scheduled (re-scheduling a postponed match): clock cleared
    """
    current = parse_status(match.status)
    target = parse_status(target)
    ensure_transition(current, target, match.match_date, now)

    clock = MatchClock(match)
    if target == MatchStatus.LIVE and current != MatchStatus.LIVE:
        _reset_scoreboard(match)
        clock.start(now)
    elif target == MatchStatus.COMPLETED:
        clock.stop(now)
    elif target in (MatchStatus.POSTPONED, MatchStatus.CANCELLED):
        clock.stop(now)
        _reset_scoreboard(match)
    elif target == MatchStatus.SCHEDULED:
        clock.reset()

    match.status = target.value
    logger.info(f"Match {match.id}: {current.value} -> {target.value}")
    return target

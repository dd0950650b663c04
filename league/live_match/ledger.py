"""
Live event ledger.

A match's events are kept in append order and double as the audit trail
for its score. The incrementally maintained score on the Match is the
authoritative one; recompute_score_from_ledger() exists to detect drift,
not to repair it.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Tuple
import logging

from config.settings import settings
from league.errors import EmptyLedgerError, ValidationError
from league.models import MatchEvent
from league.utils.helpers import event_label, safe_int, safe_strip, to_naive_utc, utcnow

from .clock import MatchClock
from .lifecycle import apply_score_mutation, check_operation
from .models import EventType, Operation, ScoreLine, Side

logger = logging.getLogger("live_match.ledger")


def parse_event_type(value) -> EventType:
    try:
        return EventType(value)
    except ValueError:
        raise ValidationError(f"Invalid event type: {value}", field="type")


def parse_side(value) -> Side:
    try:
        return Side(value)
    except ValueError:
        raise ValidationError(f"Invalid team: {value}", field="team")


def validate_minute(minute) -> int:
    if isinstance(minute, bool) or not isinstance(minute, int):
        raise ValidationError(f"Invalid minute: {minute}", field="minute")
    if minute < 0 or minute > settings.max_minute:
        raise ValidationError(
            f"Minute must be between 0 and {settings.max_minute}", field="minute"
        )
    return minute


def next_event_id(events: Iterable[MatchEvent]) -> int:
    """Local event id: one past the highest id already on the match."""
    return max((safe_int(e.event_id) for e in events), default=0) + 1


def current_score(match) -> ScoreLine:
    return ScoreLine(home=safe_int(match.home_score), away=safe_int(match.away_score))


def append_event(
    match,
    event_type,
    side,
    minute: Optional[int] = None,
    description: Optional[str] = None,
    player_id: Optional[int] = None,
    player_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[MatchEvent, ScoreLine]:
    """
    Append an event to a live match's ledger.

    `minute` defaults to the match clock's current minute. A goal raises
    the scoring side's score in the same call; a goal that would push the
    score past the maximum is rejected before anything changes.
    """
    check_operation(match.status, Operation.EVENT)
    event_type = parse_event_type(event_type)
    side = parse_side(side)
    now = now or utcnow()

    if minute is None:
        minute = MatchClock(match).current_minute(now)
    minute = validate_minute(minute)

    if event_type == EventType.GOAL:
        if current_score(match).for_side(side) >= settings.max_score:
            raise ValidationError(
                f"Scores cannot exceed {settings.max_score}", field=f"{side.value}_score"
            )
        apply_score_mutation(match, side, 1)

    event = MatchEvent(
        event_id=next_event_id(match.events),
        type=event_type.value,
        team=side.value,
        minute=minute,
        player_id=player_id,
        player_name=safe_strip(player_name),
        description=safe_strip(description) or event_label(event_type.value),
        created_at=now,
    )
    match.events.append(event)

    logger.info(
        f"Match {match.id}: {event_type.value} ({side.value}) at {minute}' "
        f"-> {current_score(match).score_display}"
    )
    return event, current_score(match)


def undo_last(match) -> Tuple[MatchEvent, ScoreLine]:
    """
    Remove the most recently appended event.

    "Most recent" is append order, not minute. Undoing a goal takes the
    goal back off the score (never below zero).
    """
    check_operation(match.status, Operation.UNDO)
    if not match.events:
        raise EmptyLedgerError()

    event = match.events.pop()
    if event.type == EventType.GOAL.value:
        apply_score_mutation(match, event.team, -1)

    logger.info(
        f"Match {match.id}: undid {event.type} ({event.team}) at {event.minute}' "
        f"-> {current_score(match).score_display}"
    )
    return event, current_score(match)


def replace_ledger(match, events: Iterable, now: Optional[datetime] = None) -> List[MatchEvent]:
    """
    Swap the whole ledger for an already validated list of events.

    Used for final snapshots, periodic syncs and results entered after the
    fact. Events keep the ids they were sent with; missing ids continue the
    sequence. The score is not touched.
    """
    now = now or utcnow()
    ledger: List[MatchEvent] = []
    used_ids = set()
    for item in events:
        event_id = safe_int(getattr(item, "event_id", None))
        if event_id <= 0 or event_id in used_ids:
            event_id = max(used_ids, default=0) + 1
        used_ids.add(event_id)
        ledger.append(MatchEvent(
            event_id=event_id,
            position=len(ledger),
            type=item.type,
            team=item.team,
            minute=safe_int(item.minute),
            player_id=item.player_id,
            player_name=safe_strip(item.player_name),
            description=safe_strip(item.description) or event_label(item.type),
            created_at=to_naive_utc(item.created_at) or now,
        ))
    match.events = ledger
    return ledger


def recompute_score_from_ledger(events: Iterable) -> ScoreLine:
    """Count goal events per side. Order does not matter."""
    home = away = 0
    for event in events:
        if event.type != EventType.GOAL.value:
            continue
        if event.team == Side.HOME.value:
            home += 1
        elif event.team == Side.AWAY.value:
            away += 1
    return ScoreLine(home=home, away=away)


def check_ledger_consistency(match) -> List[str]:
    """
    Compare the stored score with the ledger.

    Returns integrity warnings (also logged); the match is left as is.
    """
    warnings = []
    stored = current_score(match)
    derived = recompute_score_from_ledger(match.events)
    if stored != derived:
        message = (
            f"Score {stored.score_display} does not match recorded goals "
            f"{derived.score_display}"
        )
        logger.warning(f"Match {match.id}: {message}")
        warnings.append(message)
    return warnings

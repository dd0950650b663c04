"""
Live match service: the operator-facing entry points.

Each method is one synchronous validate-then-apply step: load the match,
check the optional version token, run the lifecycle/ledger rules on the
ORM object, commit, and return the new LiveState. Nothing is written when
a rule rejects the request.

Without an expected_version the last write wins; clients that poll and
push snapshots should send the version they last saw.
"""
from typing import Iterable, List, Optional
import logging

from sqlalchemy.orm import Session

from league import crud, schemas
from league.errors import ValidationError
from league.models import Match, MatchEvent
from league.validation import (
    NO_EVENTS_WARNING,
    raise_for_report,
    validate_match_events,
    validate_match_scores,
)

from .clock import Clock, MatchClock
from .ledger import (
    append_event,
    check_ledger_consistency,
    parse_side,
    replace_ledger,
    undo_last,
    validate_minute,
)
from .lifecycle import (
    apply_score_mutation,
    check_operation,
    parse_status,
    transition,
)
from .models import MatchStatus, Operation, ValidationReport

logger = logging.getLogger("live_match.service")


class LiveMatchService:
    """Live match operations bound to a database session and a clock."""

    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _load(self, match_id: int, expected_version: Optional[int] = None) -> Match:
        match = crud.require_match(self.db, match_id)
        crud.check_version(match, expected_version)
        return match

    def _save(self, match: Match, action: str) -> Match:
        crud.touch_match(match, self.clock.now())
        crud.commit_or_raise(self.db, action)
        return crud.require_match(self.db, match.id)

    def build_state(self, match: Match, warnings: Optional[List[str]] = None) -> schemas.LiveState:
        """Snapshot of a match for operators and spectators."""
        now = self.clock.now()
        clock = MatchClock(match)
        return schemas.LiveState(
            match_id=match.id,
            status=match.status,
            home_score=match.home_score,
            away_score=match.away_score,
            minute=clock.current_minute(now),
            is_ticking=clock.is_running,
            version=match.version,
            home_team=schemas.TeamSummary.model_validate(match.home_team),
            away_team=schemas.TeamSummary.model_validate(match.away_team),
            events=[schemas.Event.model_validate(e) for e in match.events],
            warnings=warnings or [],
            last_updated=match.updated_at,
        )

    def _event_result(self, event: MatchEvent, match: Match, warnings=None) -> schemas.LiveEventResult:
        return schemas.LiveEventResult(
            event=schemas.Event.model_validate(event),
            state=self.build_state(match, warnings),
        )

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def get_state(self, match_id: int) -> schemas.LiveState:
        match = crud.require_match(self.db, match_id)
        warnings = []
        if parse_status(match.status).allows_events:
            warnings = check_ledger_consistency(match)
        return self.build_state(match, warnings)

    def list_live(self) -> List[schemas.LiveState]:
        return [self.build_state(m) for m in crud.get_live_matches(self.db)]

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def start(self, match_id: int, expected_version: Optional[int] = None) -> schemas.LiveState:
        """scheduled -> live; clock restarts at minute 0."""
        match = self._load(match_id, expected_version)
        check_operation(match.status, Operation.START)
        transition(match, MatchStatus.LIVE, self.clock.now())
        return self.build_state(self._save(match, "start match"))

    def pause(self, match_id: int, expected_version: Optional[int] = None) -> schemas.LiveState:
        """Stop the clock; status stays live."""
        match = self._load(match_id, expected_version)
        check_operation(match.status, Operation.PAUSE)
        MatchClock(match).pause(self.clock.now())
        logger.info(f"Match {match.id}: clock paused")
        return self.build_state(self._save(match, "pause match"))

    def resume(self, match_id: int, expected_version: Optional[int] = None) -> schemas.LiveState:
        match = self._load(match_id, expected_version)
        check_operation(match.status, Operation.RESUME)
        MatchClock(match).resume(self.clock.now())
        logger.info(f"Match {match.id}: clock resumed")
        return self.build_state(self._save(match, "resume match"))

    def end(
        self,
        match_id: int,
        home_score: int,
        away_score: int,
        events: Optional[Iterable[schemas.EventIn]] = None,
        expected_version: Optional[int] = None,
    ) -> schemas.LiveState:
        """
        live -> completed with the operator's final snapshot.

        The supplied scores are stored as given. If they disagree with the
        ledger the mismatch is logged and returned as a warning.
        """
        match = self._load(match_id, expected_version)
        check_operation(match.status, Operation.END)

        report = ValidationReport()
        validate_match_scores(report, home_score, away_score, MatchStatus.COMPLETED)
        if events is not None:
            events = list(events)
            validate_match_events(report, events, MatchStatus.COMPLETED)
        raise_for_report(report)

        now = self.clock.now()
        transition(match, MatchStatus.COMPLETED, now)
        match.home_score = home_score
        match.away_score = away_score
        if events is not None:
            replace_ledger(match, events, now)

        warnings = check_ledger_consistency(match)
        if not match.events:
            warnings.append(NO_EVENTS_WARNING)
        return self.build_state(self._save(match, "end match"), warnings)

    def postpone(self, match_id: int, expected_version: Optional[int] = None) -> schemas.LiveState:
        return self._shelve(match_id, Operation.POSTPONE, expected_version)

    def cancel(self, match_id: int, expected_version: Optional[int] = None) -> schemas.LiveState:
        return self._shelve(match_id, Operation.CANCEL, expected_version)

    def _shelve(self, match_id: int, operation: Operation, expected_version: Optional[int]) -> schemas.LiveState:
        match = self._load(match_id, expected_version)
        check_operation(match.status, operation)
        target = MatchStatus.POSTPONED if operation == Operation.POSTPONE else MatchStatus.CANCELLED
        transition(match, target, self.clock.now())
        return self.build_state(self._save(match, f"{operation.value} match"))

    # ------------------------------------------------------------------
    # ledger and score
    # ------------------------------------------------------------------

    def record_event(
        self,
        match_id: int,
        event: schemas.EventIn,
        expected_version: Optional[int] = None,
    ) -> schemas.LiveEventResult:
        """Append an event; goals move the score in the same write."""
        match = self._load(match_id, expected_version)
        if event.player_id is not None and crud.get_player_by_id(self.db, event.player_id) is None:
            raise ValidationError(f"Player {event.player_id} not found", field="player_id")
        appended, _ = append_event(
            match,
            event.type,
            event.team,
            minute=event.minute,
            description=event.description,
            player_id=event.player_id,
            player_name=event.player_name,
            now=self.clock.now(),
        )
        match = self._save(match, "record event")
        return self._event_result(appended, match)

    def change_score(
        self,
        match_id: int,
        team: str,
        delta: int,
        expected_version: Optional[int] = None,
    ) -> schemas.LiveState:
        """Manual score nudge without a ledger entry."""
        match = self._load(match_id, expected_version)
        apply_score_mutation(match, parse_side(team), delta)
        warnings = check_ledger_consistency(match)
        return self.build_state(self._save(match, "update score"), warnings)

    def undo(self, match_id: int, expected_version: Optional[int] = None) -> schemas.LiveEventResult:
        """Remove the last appended event (and its goal, if it was one)."""
        match = self._load(match_id, expected_version)
        removed, _ = undo_last(match)
        removed_view = schemas.Event.model_validate(removed)
        match = self._save(match, "undo event")
        return schemas.LiveEventResult(event=removed_view, state=self.build_state(match))

    # ------------------------------------------------------------------
    # snapshot sync
    # ------------------------------------------------------------------

    def sync(self, match_id: int, snapshot: schemas.LiveSyncRequest) -> schemas.LiveState:
        """
        Whole-state upsert pushed by the operator client.

        Replaying the same snapshot leaves the match unchanged. The
        snapshot may also finish the match (completed/postponed/cancelled),
        in which case the lifecycle rules apply as for the dedicated calls.
        """
        match = self._load(match_id, snapshot.expected_version)
        check_operation(match.status, Operation.SYNC)
        target = parse_status(snapshot.status)

        report = ValidationReport()
        validate_match_scores(report, snapshot.home_score, snapshot.away_score, target)
        validate_match_events(report, snapshot.events, target)
        raise_for_report(report)
        minute = validate_minute(snapshot.minute)

        now = self.clock.now()
        if target != MatchStatus.LIVE:
            transition(match, target, now)

        if target.allows_events:
            match.home_score = snapshot.home_score
            match.away_score = snapshot.away_score
            replace_ledger(match, snapshot.events, now)

        if target == MatchStatus.LIVE:
            clock = MatchClock(match)
            clock.set_minute(minute, now)
            if snapshot.is_ticking:
                clock.resume(now)
            else:
                clock.pause(now)

        warnings = check_ledger_consistency(match) if target.allows_events else []
        return self.build_state(self._save(match, "sync match"), warnings)

"""
Whole-match validation for create/update/sync payloads.

Collects every problem into a ValidationReport instead of stopping at the
first, so the admin form can show all of them at once.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from config.settings import settings
from league.errors import ValidationError
from league.live_match.lifecycle import check_match_date
from league.live_match.models import (
    EventType,
    MatchStatus,
    Side,
    ValidationReport,
)
from league.utils.helpers import safe_strip

# Optional text fields and their maximum lengths
TEXT_LIMITS = {
    "venue": 200,
    "referee": 100,
    "round": 100,
    "notes": 1000,
}

NO_EVENTS_WARNING = "Completed match has no events - player statistics will not be updated"


def _get(item: Any, key: str, default=None):
    if isinstance(item, dict):
        return item.get(key, default)
    return getattr(item, key, default)


def validate_match_teams(report: ValidationReport, home_team_id, away_team_id) -> None:
    if not home_team_id or not away_team_id:
        report.add_error("home_team_id", "Both home and away teams must be selected")
    elif home_team_id == away_team_id:
        report.add_error("away_team_id", "Home and away teams cannot be the same")


def validate_match_scores(report: ValidationReport, home_score: int, away_score: int, status: MatchStatus) -> None:
    if home_score < 0 or away_score < 0:
        report.add_error("score", "Scores cannot be negative")
    elif home_score > settings.max_score or away_score > settings.max_score:
        report.add_error("score", f"Scores cannot exceed {settings.max_score}")
    elif not status.allows_events and (home_score > 0 or away_score > 0):
        report.add_error("score", f"{status.value} matches should not have scores")


def validate_match_events(report: ValidationReport, events: Iterable, status: MatchStatus) -> None:
    events = list(events or [])
    if events and not status.allows_events:
        report.add_error("events", f"{status.value} matches should not have events")
        return

    valid_types = {t.value for t in EventType}
    valid_sides = {s.value for s in Side}
    for index, event in enumerate(events):
        event_type = _get(event, "type")
        team = _get(event, "team")
        minute = _get(event, "minute")
        if minute is None:
            minute = 0
        if event_type not in valid_types:
            report.add_error("events", f"Invalid event type at index {index}: {event_type}")
        elif team not in valid_sides:
            report.add_error("events", f"Invalid team at index {index}: {team}")
        elif isinstance(minute, bool) or not isinstance(minute, int) or minute < 0 or minute > settings.max_minute:
            report.add_error("events", f"Invalid minute at index {index}: {minute}")


def validate_text_lengths(report: ValidationReport, data: Dict[str, Any]) -> None:
    for name, limit in TEXT_LIMITS.items():
        if len(safe_strip(data.get(name))) > limit:
            report.add_error(name, f"{name.capitalize()} cannot exceed {limit} characters")


def validate_complete_match(
    data: Dict[str, Any],
    now: datetime,
    check_date: bool = True,
) -> ValidationReport:
    """
    Validate a full match payload.

    `data` holds home_team_id, away_team_id, season_id, match_date, status,
    home_score, away_score, events and the optional text fields. The date
    window is skipped when `check_date` is False (editing details of a
    match whose date is unchanged).
    """
    report = ValidationReport()

    if not data.get("season_id"):
        report.add_error("season_id", "Season is required")

    validate_match_teams(report, data.get("home_team_id"), data.get("away_team_id"))

    try:
        status = MatchStatus(data.get("status") or MatchStatus.SCHEDULED.value)
    except ValueError:
        report.add_error("status", f"Invalid match status: {data.get('status')}")
        return report

    if check_date:
        date_check = check_match_date(status, data.get("match_date"), now)
        if not date_check.accepted:
            report.add_error(date_check.field or "match_date", date_check.reason)

    events = data.get("events") or []
    validate_match_scores(
        report, data.get("home_score") or 0, data.get("away_score") or 0, status
    )
    validate_match_events(report, events, status)
    validate_text_lengths(report, data)

    if status == MatchStatus.COMPLETED and not events:
        report.warnings.append(NO_EVENTS_WARNING)

    return report


def raise_for_report(report: ValidationReport) -> None:
    """Turn a failed report into a single ValidationError."""
    if report.is_valid:
        return
    first: Optional[dict] = report.errors[0]
    message = "; ".join(e["message"] for e in report.errors)
    raise ValidationError(message, field=first["field"])

"""
CRUD operations (Create, Read, Update, Delete)
Database query and write functions for seasons, teams, players and matches
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy.orm.exc import StaleDataError

from league.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from league.live_match.ledger import replace_ledger
from league.live_match.lifecycle import parse_status, transition
from league.live_match.models import MatchStatus, ValidationReport
from league.models import Match, Player, Season, Team
from league.utils.helpers import to_naive_utc
from league.validation import raise_for_report, validate_complete_match

logger = logging.getLogger("league.crud")

# Match fields an admin may still edit once the match is finished
DETAIL_FIELDS = {"venue", "round", "referee", "notes"}


# ===== TRANSACTIONS =====

def commit_or_raise(db: Session, action: str) -> None:
    """
    Commit the session, mapping database failures onto league errors.

    A stale version (another operator saved first) is a ConflictError;
    anything else the database rejects is a PersistenceError.
    """
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConflictError("Match was modified by another operator; reload and try again", field="version")
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error while trying to {action}: {e.orig}")
        raise ConflictError(f"Could not {action}: conflicts with existing data")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error while trying to {action}: {e}", exc_info=True)
        raise PersistenceError(f"Could not {action}: storage unavailable")


def check_version(match: Match, expected_version: Optional[int]) -> None:
    """Optimistic concurrency check for callers that send the version they saw."""
    if expected_version is not None and expected_version != match.version:
        raise ConflictError(
            f"Match was modified by another operator (version {match.version}, expected {expected_version})",
            field="version",
        )


def touch_match(match: Match, now: datetime) -> None:
    """Bump the version of a match about to be written, ledger-only changes included."""
    match.version = (match.version or 0) + 1
    match.updated_at = now


# Columns an edit may not blank out
REQUIRED_FIELDS = {
    "season": ("name", "start_date", "end_date", "is_active", "max_teams", "description"),
    "team": ("name", "manager", "home_color", "away_color", "is_active"),
    "player": ("name", "position", "is_active"),
    "match": (
        "home_team_id", "away_team_id", "season_id", "match_date", "status",
        "home_score", "away_score", "venue", "round", "referee", "notes",
    ),
}


def reject_nulls(data: Dict[str, Any], entity: str) -> None:
    """Raise a ValidationError for the first required field sent as null."""
    for name in REQUIRED_FIELDS[entity]:
        if name in data and data[name] is None:
            label = name.replace("_", " ").capitalize()
            raise ValidationError(f"{label} cannot be empty", field=name)


# ===== SEASONS =====

def get_seasons(db: Session, skip: int = 0, limit: int = 100) -> List[Season]:
    """
    Get all seasons, newest first
    """
    return db.query(Season).order_by(desc(Season.start_date)).offset(skip).limit(limit).all()


def get_season_by_id(db: Session, season_id: int) -> Optional[Season]:
    return db.query(Season).filter(Season.id == season_id).first()


def get_active_season(db: Session) -> Optional[Season]:
    return db.query(Season).filter(Season.is_active.is_(True)).first()


def require_season(db: Session, season_id: int) -> Season:
    season = get_season_by_id(db, season_id)
    if season is None:
        raise NotFoundError(f"Season {season_id} not found", field="season_id")
    return season


def _deactivate_other_seasons(db: Session, keep_id: Optional[int]) -> None:
    query = db.query(Season).filter(Season.is_active.is_(True))
    if keep_id is not None:
        query = query.filter(Season.id != keep_id)
    query.update({Season.is_active: False}, synchronize_session=False)


def create_season(db: Session, data: Dict[str, Any]) -> Season:
    if data["end_date"] < data["start_date"]:
        raise ValidationError("Season end date must be after its start date", field="end_date")
    if data.get("is_active"):
        _deactivate_other_seasons(db, None)
    season = Season(**data)
    db.add(season)
    commit_or_raise(db, "create season")
    db.refresh(season)
    return season


def update_season(db: Session, season: Season, data: Dict[str, Any]) -> Season:
    reject_nulls(data, "season")
    start = data.get("start_date", season.start_date)
    end = data.get("end_date", season.end_date)
    if end < start:
        raise ValidationError("Season end date must be after its start date", field="end_date")
    if data.get("is_active"):
        _deactivate_other_seasons(db, season.id)
    for key, value in data.items():
        setattr(season, key, value)
    commit_or_raise(db, "update season")
    db.refresh(season)
    return season


def delete_season(db: Session, season: Season) -> None:
    if db.query(Match).filter(Match.season_id == season.id).first() is not None:
        raise ConflictError("Season has matches and cannot be deleted")
    db.delete(season)
    commit_or_raise(db, "delete season")


# ===== TEAMS =====

def get_teams(
    db: Session,
    season_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100
) -> List[Team]:
    """
    Get all teams with pagination
    """
    query = db.query(Team).order_by(Team.name)
    if season_id:
        query = query.filter(Team.season_id == season_id)
    return query.offset(skip).limit(limit).all()


def get_team_by_id(db: Session, team_id: int) -> Optional[Team]:
    """
    Get a specific team by ID
    """
    return db.query(Team).filter(Team.id == team_id).first()


def get_team_by_name(db: Session, name: str) -> Optional[Team]:
    """
    Get a team by name (case-insensitive)
    """
    return db.query(Team).filter(Team.name.ilike(name)).first()


def require_team(db: Session, team_id: int, field: str = "team_id") -> Team:
    team = get_team_by_id(db, team_id)
    if team is None:
        raise NotFoundError(f"Team {team_id} not found", field=field)
    return team


def create_team(db: Session, data: Dict[str, Any]) -> Team:
    if get_team_by_name(db, data["name"]) is not None:
        raise ConflictError(f"Team '{data['name']}' already exists", field="name")
    if data.get("season_id"):
        require_season(db, data["season_id"])
    team = Team(**data)
    db.add(team)
    commit_or_raise(db, "create team")
    db.refresh(team)
    return team


def update_team(db: Session, team: Team, data: Dict[str, Any]) -> Team:
    reject_nulls(data, "team")
    if "name" in data:
        existing = get_team_by_name(db, data["name"])
        if existing is not None and existing.id != team.id:
            raise ConflictError(f"Team '{data['name']}' already exists", field="name")
    if data.get("season_id"):
        require_season(db, data["season_id"])
    for key, value in data.items():
        setattr(team, key, value)
    commit_or_raise(db, "update team")
    db.refresh(team)
    return team


def delete_team(db: Session, team: Team) -> None:
    has_matches = (
        db.query(Match)
        .filter((Match.home_team_id == team.id) | (Match.away_team_id == team.id))
        .first()
    )
    if has_matches is not None:
        raise ConflictError("Team has matches and cannot be deleted")
    for player in team.players:
        player.team_id = None
    db.delete(team)
    commit_or_raise(db, "delete team")


# ===== PLAYERS =====

def get_players(
    db: Session,
    team_id: Optional[int] = None,
    position: Optional[str] = None,
    skip: int = 0,
    limit: int = 100
) -> List[Player]:
    """
    Get players with optional filters
    - team_id: filter by team
    - position: filter by position
    """
    query = (
        db.query(Player)
        .options(joinedload(Player.team))
        .order_by(Player.name)
    )

    if team_id:
        query = query.filter(Player.team_id == team_id)

    if position:
        query = query.filter(Player.position.ilike(f"%{position}%"))

    return query.offset(skip).limit(limit).all()


def get_player_by_id(db: Session, player_id: int) -> Optional[Player]:
    """
    Get a specific player by ID
    """
    return (
        db.query(Player)
        .options(joinedload(Player.team))
        .filter(Player.id == player_id)
        .first()
    )


def get_players_by_ids(db: Session, player_ids) -> List[Player]:
    ids = set(player_ids)
    if not ids:
        return []
    return (
        db.query(Player)
        .options(joinedload(Player.team))
        .filter(Player.id.in_(ids))
        .all()
    )


def _check_jersey(db: Session, team_id: Optional[int], number: Optional[int], player_id: Optional[int] = None) -> None:
    if team_id is None or number is None:
        return
    query = db.query(Player).filter(Player.team_id == team_id, Player.jersey_number == number)
    if player_id is not None:
        query = query.filter(Player.id != player_id)
    if query.first() is not None:
        raise ConflictError(f"Jersey number {number} is already taken in this team", field="jersey_number")


def create_player(db: Session, data: Dict[str, Any]) -> Player:
    if data.get("team_id"):
        require_team(db, data["team_id"])
    _check_jersey(db, data.get("team_id"), data.get("jersey_number"))
    player = Player(**data)
    db.add(player)
    commit_or_raise(db, "create player")
    db.refresh(player)
    return player


def update_player(db: Session, player: Player, data: Dict[str, Any]) -> Player:
    reject_nulls(data, "player")
    team_id = data.get("team_id", player.team_id)
    if data.get("team_id"):
        require_team(db, data["team_id"])
    _check_jersey(db, team_id, data.get("jersey_number", player.jersey_number), player.id)
    for key, value in data.items():
        setattr(player, key, value)
    commit_or_raise(db, "update player")
    db.refresh(player)
    return player


def delete_player(db: Session, player: Player) -> None:
    db.delete(player)
    commit_or_raise(db, "delete player")


# ===== MATCHES =====

def _match_query(db: Session):
    return db.query(Match).options(
        joinedload(Match.home_team),
        joinedload(Match.away_team),
        selectinload(Match.events),
    )


def get_matches(
    db: Session,
    season_id: Optional[int] = None,
    team_id: Optional[int] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100
) -> List[Match]:
    """
    Get matches with optional filters
    - season_id: filter by season
    - team_id: filter matches where team is home or away
    - status: filter by lifecycle status
    """
    query = _match_query(db).order_by(desc(Match.match_date))

    if season_id:
        query = query.filter(Match.season_id == season_id)

    if team_id:
        query = query.filter(
            (Match.home_team_id == team_id) | (Match.away_team_id == team_id)
        )

    if status:
        query = query.filter(Match.status == parse_status(status).value)

    return query.offset(skip).limit(limit).all()


def get_live_matches(db: Session) -> List[Match]:
    return (
        _match_query(db)
        .filter(Match.status == MatchStatus.LIVE.value)
        .order_by(Match.match_date)
        .all()
    )


def get_completed_matches(db: Session, season_id: Optional[int] = None) -> List[Match]:
    query = _match_query(db).filter(Match.status == MatchStatus.COMPLETED.value)
    if season_id:
        query = query.filter(Match.season_id == season_id)
    return query.all()


def get_match_by_id(db: Session, match_id: int) -> Optional[Match]:
    """
    Get a specific match by ID
    """
    return _match_query(db).filter(Match.id == match_id).first()


def require_match(db: Session, match_id: int) -> Match:
    match = get_match_by_id(db, match_id)
    if match is None:
        raise NotFoundError(f"Match {match_id} not found", field="match_id")
    return match


def _check_references(db: Session, data: Dict[str, Any]) -> None:
    require_team(db, data["home_team_id"], field="home_team_id")
    require_team(db, data["away_team_id"], field="away_team_id")
    require_season(db, data["season_id"])


def create_match(db: Session, data: Dict[str, Any], now: datetime) -> Tuple[Match, ValidationReport]:
    """
    Create a match after full validation.

    Returns the match and the validation report (for its warnings).
    """
    data["match_date"] = to_naive_utc(data.get("match_date"))
    if data.get("status") == MatchStatus.LIVE.value:
        raise ValidationError("Create the match as scheduled and start it from the live controls", field="status")
    report = validate_complete_match(data, now)
    raise_for_report(report)
    _check_references(db, data)

    events = data.pop("events", None) or []
    match = Match(**data)
    status = MatchStatus(match.status)
    if status.allows_events:
        replace_ledger(match, events, now)
    db.add(match)
    commit_or_raise(db, "create match")
    logger.info(f"Match {match.id} created ({match.status})")
    return require_match(db, match.id), report


def _current_values(match: Match) -> Dict[str, Any]:
    return {
        "home_team_id": match.home_team_id,
        "away_team_id": match.away_team_id,
        "season_id": match.season_id,
        "match_date": match.match_date,
        "status": match.status,
        "home_score": match.home_score,
        "away_score": match.away_score,
        "venue": match.venue,
        "round": match.round,
        "referee": match.referee,
        "notes": match.notes,
        "events": list(match.events),
    }


def update_match(db: Session, match: Match, data: Dict[str, Any], now: datetime) -> Tuple[Match, ValidationReport]:
    """
    Admin edit of a match.

    - finished matches only accept detail edits (venue, round, referee,
      notes), except re-scheduling a postponed match
    - live score/events go through the live endpoints
    - a status change runs through the lifecycle, which clears scores and
      events when a match is postponed or cancelled
    """
    check_version(match, data.pop("expected_version", None))
    reject_nulls(data, "match")
    if "match_date" in data:
        data["match_date"] = to_naive_utc(data["match_date"])

    current = parse_status(match.status)
    target = parse_status(data.get("status", match.status))
    changed = set(data)
    rescheduling = current == MatchStatus.POSTPONED and target == MatchStatus.SCHEDULED

    if current.is_terminal and not rescheduling and not changed <= DETAIL_FIELDS:
        raise ConflictError(
            f"Match is {current.value}; only {', '.join(sorted(DETAIL_FIELDS))} can be edited",
            field="status",
        )
    if current == MatchStatus.LIVE and target == MatchStatus.LIVE and changed & {"home_score", "away_score", "events"}:
        raise ValidationError("Use the live endpoints to change a live match's score or events", field="status")

    merged = _current_values(match)
    merged.update(data)
    if not target.allows_events:
        merged["home_score"] = 0
        merged["away_score"] = 0
        merged["events"] = []

    report = validate_complete_match(
        merged, now, check_date=("match_date" in data or target != current)
    )
    raise_for_report(report)
    if changed & {"home_team_id", "away_team_id", "season_id"}:
        _check_references(db, merged)

    for key in ("home_team_id", "away_team_id", "season_id", "match_date") + tuple(DETAIL_FIELDS):
        if key in data:
            setattr(match, key, data[key])

    if target != current:
        transition(match, target, now)

    if target == MatchStatus.COMPLETED:
        match.home_score = merged["home_score"]
        match.away_score = merged["away_score"]
        if "events" in data:
            replace_ledger(match, data["events"] or [], now)

    touch_match(match, now)
    commit_or_raise(db, "update match")
    return require_match(db, match.id), report


def delete_match(db: Session, match: Match) -> None:
    if match.status == MatchStatus.LIVE.value:
        raise ConflictError("Match is live; end or cancel it before deleting", field="status")
    db.delete(match)
    commit_or_raise(db, "delete match")

"""
Pydantic schemas for API request/response models
"""
from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import date, datetime


# ===== SEASON SCHEMAS =====

class SeasonBase(BaseModel):
    """Base season schema"""
    name: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date
    is_active: bool = False
    max_teams: int = Field(16, ge=2, le=64)
    description: str = ""

    class Config:
        from_attributes = True


class SeasonCreate(SeasonBase):
    pass


class SeasonUpdate(BaseModel):
    """Partial season update"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    max_teams: Optional[int] = Field(None, ge=2, le=64)
    description: Optional[str] = None


class Season(SeasonBase):
    """Season response with ID"""
    id: int


# ===== TEAM SCHEMAS =====

class TeamBase(BaseModel):
    """Base team schema"""
    name: str = Field(..., min_length=1, max_length=100)
    season_id: Optional[int] = None
    founded_year: Optional[int] = None
    manager: str = ""
    home_color: str = "#ffffff"
    away_color: str = "#000000"
    is_active: bool = True

    class Config:
        from_attributes = True


class TeamCreate(TeamBase):
    pass


class TeamUpdate(BaseModel):
    """Partial team update"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    season_id: Optional[int] = None
    founded_year: Optional[int] = None
    manager: Optional[str] = None
    home_color: Optional[str] = None
    away_color: Optional[str] = None
    is_active: Optional[bool] = None


class TeamSummary(BaseModel):
    """Team reference embedded in matches"""
    id: int
    name: str

    class Config:
        from_attributes = True


class Team(TeamBase):
    """Team response with ID"""
    id: int


# ===== PLAYER SCHEMAS =====

class PlayerBase(BaseModel):
    """Base player schema"""
    name: str = Field(..., min_length=2, max_length=100)
    team_id: Optional[int] = None
    position: str = Field(..., pattern="^(goalkeeper|defender|midfielder|forward)$")
    jersey_number: Optional[int] = Field(None, ge=1, le=99)
    nationality: Optional[str] = None
    is_active: bool = True

    class Config:
        from_attributes = True


class PlayerCreate(PlayerBase):
    pass


class PlayerUpdate(BaseModel):
    """Partial player update"""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    team_id: Optional[int] = None
    position: Optional[str] = Field(None, pattern="^(goalkeeper|defender|midfielder|forward)$")
    jersey_number: Optional[int] = Field(None, ge=1, le=99)
    nationality: Optional[str] = None
    is_active: Optional[bool] = None


class Player(PlayerBase):
    """Player response with ID and team info"""
    id: int
    team: Optional[TeamSummary] = None


# ===== EVENT SCHEMAS =====

class EventIn(BaseModel):
    """
    Event as sent by the operator client.

    type/team are plain strings and minute is taken as sent, so bad values
    come back as a 400 naming the offending value rather than a schema error.
    """
    event_id: Optional[int] = None
    type: str
    team: str
    minute: Any = None
    player_id: Optional[int] = None
    player_name: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class Event(BaseModel):
    """Event response"""
    event_id: int
    type: str
    team: str
    minute: int
    player_id: Optional[int] = None
    player_name: str = ""
    description: str = ""
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== MATCH SCHEMAS =====

class MatchCreate(BaseModel):
    """New match. Results can be entered directly with status=completed."""
    home_team_id: int
    away_team_id: int
    season_id: int
    match_date: datetime
    status: str = "scheduled"
    home_score: int = 0
    away_score: int = 0
    venue: str = ""
    round: str = "Regular Season"
    referee: str = ""
    notes: str = ""
    events: list[EventIn] = []


class MatchUpdate(BaseModel):
    """Partial match update (admin edit)"""
    home_team_id: Optional[int] = None
    away_team_id: Optional[int] = None
    season_id: Optional[int] = None
    match_date: Optional[datetime] = None
    status: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    venue: Optional[str] = None
    round: Optional[str] = None
    referee: Optional[str] = None
    notes: Optional[str] = None
    events: Optional[list[EventIn]] = None
    expected_version: Optional[int] = None


class Match(BaseModel):
    """Match response with team info and ledger"""
    id: int
    home_team_id: int
    away_team_id: int
    season_id: int
    match_date: datetime
    status: str
    home_score: int
    away_score: int
    venue: str = ""
    round: str = ""
    referee: str = ""
    notes: str = ""
    version: int
    home_team: TeamSummary
    away_team: TeamSummary
    events: list[Event] = []

    class Config:
        from_attributes = True


class MatchWriteResult(BaseModel):
    """Saved match plus any soft warnings raised while validating it"""
    match: Match
    warnings: list[str] = []


# ===== LIVE SCHEMAS =====

class LiveControl(BaseModel):
    """Body for start/pause/resume/undo/postpone/cancel"""
    expected_version: Optional[int] = None


class LiveEventRequest(EventIn):
    expected_version: Optional[int] = None


class LiveScoreRequest(BaseModel):
    team: str
    delta: int = Field(..., ge=-1, le=1)
    expected_version: Optional[int] = None


class LiveEndRequest(BaseModel):
    """
    Final snapshot. The supplied scores are authoritative; events default
    to the ledger already on the server.
    """
    home_score: int
    away_score: int
    events: Optional[list[EventIn]] = None
    expected_version: Optional[int] = None


class LiveSyncRequest(BaseModel):
    """Whole-state snapshot pushed periodically by the operator client"""
    status: str
    home_score: int = 0
    away_score: int = 0
    minute: Any = 0
    is_ticking: bool = True
    events: list[EventIn] = []
    expected_version: Optional[int] = None


class LiveState(BaseModel):
    """What a spectator view polls for"""
    match_id: int
    status: str
    home_score: int
    away_score: int
    minute: int
    is_ticking: bool
    version: int
    home_team: TeamSummary
    away_team: TeamSummary
    events: list[Event] = []
    warnings: list[str] = []
    last_updated: Optional[datetime] = None


class LiveEventResult(BaseModel):
    """Recorded/removed event and the state after the change"""
    event: Event
    state: LiveState


# ===== STANDINGS SCHEMAS =====

class StandingRow(BaseModel):
    position: int
    team_id: int
    team_name: str
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int
    fair_play_points: int


class StandingsTable(BaseModel):
    season_id: Optional[int]
    season_name: Optional[str]
    count: int
    standings: list[StandingRow]


# ===== PLAYER STATS SCHEMAS =====

class PlayerMatchLine(BaseModel):
    """A player's events in one completed match"""
    match_id: int
    match_date: datetime
    side: str
    opponent_id: int
    result: str
    goals: int
    assists: int
    yellow_cards: int
    red_cards: int


class PlayerStatsBase(BaseModel):
    player_id: int
    player_name: str
    team_id: Optional[int] = None
    team_name: Optional[str] = None
    appearances: int
    goals: int
    assists: int
    yellow_cards: int
    red_cards: int
    wins: int
    draws: int
    losses: int


class PlayerStats(PlayerStatsBase):
    """Season (or career, without a season) totals plus the per-match lines"""
    season_id: Optional[int] = None
    matches: list[PlayerMatchLine] = []


class PlayerLeaderRow(PlayerStatsBase):
    position: int


class PlayerLeaderboard(BaseModel):
    season_id: Optional[int]
    season_name: Optional[str]
    stat: str
    count: int
    players: list[PlayerLeaderRow]

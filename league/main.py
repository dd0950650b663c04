"""
League Manager - Main FastAPI Application
Seasons, teams, players, fixtures and live match scoring
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from league import crud, schemas
from league.db import get_db, init_db
from league.errors import LeagueError, NotFoundError, PersistenceError
from league.logging_config import configure_logging
from league.routers import admin, live
from league.player_stats import compute_player_stats, rank_players
from league.standings import compute_standings

# Version tracking
APP_VERSION = "v1.0.0"
APP_NAME = "League Manager"

logger = logging.getLogger("league.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    yield


app = FastAPI(
    title=APP_NAME,
    description="League administration and live match scoring",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(LeagueError)
async def league_error_handler(request: Request, exc: LeagueError):
    """Map the league error taxonomy onto HTTP responses."""
    if isinstance(exc, PersistenceError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Live routes first so /matches/live is not read as /matches/{match_id}
app.include_router(live.router)
app.include_router(admin.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/version")
def version_info():
    """Version information endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "full": f"{APP_NAME} {APP_VERSION}"
    }


# =============================================================================
# SEASONS
# =============================================================================

@app.get("/seasons", response_model=list[schemas.Season])
def list_seasons(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return crud.get_seasons(db, skip=skip, limit=limit)


@app.get("/seasons/{season_id}", response_model=schemas.Season)
def get_season(season_id: int, db: Session = Depends(get_db)):
    return crud.require_season(db, season_id)


# =============================================================================
# TEAMS
# =============================================================================

@app.get("/teams", response_model=list[schemas.Team])
def list_teams(
    season_id: Optional[int] = Query(None, description="Only teams registered in this season"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return crud.get_teams(db, season_id=season_id, skip=skip, limit=limit)


@app.get("/teams/{team_id}", response_model=schemas.Team)
def get_team(team_id: int, db: Session = Depends(get_db)):
    return crud.require_team(db, team_id)


@app.get("/teams/{team_id}/players", response_model=list[schemas.Player])
def get_team_players(team_id: int, db: Session = Depends(get_db)):
    """Squad list for a team."""
    crud.require_team(db, team_id)
    return crud.get_players(db, team_id=team_id, limit=500)


# =============================================================================
# PLAYERS
# =============================================================================

@app.get("/players", response_model=list[schemas.Player])
def list_players(
    team_id: Optional[int] = Query(None),
    position: Optional[str] = Query(None, description="goalkeeper, defender, midfielder or forward"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return crud.get_players(db, team_id=team_id, position=position, skip=skip, limit=limit)


@app.get("/players/{player_id}", response_model=schemas.Player)
def get_player(player_id: int, db: Session = Depends(get_db)):
    player = crud.get_player_by_id(db, player_id)
    if player is None:
        raise NotFoundError(f"Player {player_id} not found")
    return player


@app.get("/players/{player_id}/stats", response_model=schemas.PlayerStats)
def get_player_stats(
    player_id: int,
    season_id: Optional[int] = Query(None, description="Omit for career totals"),
    db: Session = Depends(get_db),
):
    """Goals, assists and cards from completed matches, with one line per match played."""
    player = crud.get_player_by_id(db, player_id)
    if player is None:
        raise NotFoundError(f"Player {player_id} not found")
    if season_id:
        crud.require_season(db, season_id)

    matches = crud.get_completed_matches(db, season_id=season_id)
    record = compute_player_stats(matches, {player.id: player})[player.id]
    return dict(record.to_dict(include_matches=True), season_id=season_id)


# =============================================================================
# MATCHES
# =============================================================================

@app.get("/matches", response_model=list[schemas.Match])
def list_matches(
    season_id: Optional[int] = Query(None),
    team_id: Optional[int] = Query(None, description="Matches where the team plays home or away"),
    status: Optional[str] = Query(None, description="scheduled, live, completed, postponed or cancelled"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return crud.get_matches(
        db, season_id=season_id, team_id=team_id, status=status, skip=skip, limit=limit
    )


@app.get("/matches/{match_id}", response_model=schemas.Match)
def get_match(match_id: int, db: Session = Depends(get_db)):
    return crud.require_match(db, match_id)


# =============================================================================
# STANDINGS
# =============================================================================

def _season_or_active(db: Session, season_id: Optional[int]):
    return crud.require_season(db, season_id) if season_id else crud.get_active_season(db)


@app.get("/standings", response_model=schemas.StandingsTable)
def standings(
    season_id: Optional[int] = Query(None, description="Defaults to the active season"),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    """
    League table from completed matches.

    Without season_id the active season is used; if there is none, every
    team and completed match is counted.
    """
    season = _season_or_active(db, season_id)
    season_filter = season.id if season else None

    matches = crud.get_completed_matches(db, season_id=season_filter)
    # Registered teams plus any team that played in the season
    teams = {team.id: team for team in crud.get_teams(db, season_id=season_filter, limit=1000)}
    for match in matches:
        teams.setdefault(match.home_team_id, match.home_team)
        teams.setdefault(match.away_team_id, match.away_team)

    rows = compute_standings(teams.values(), matches)
    if limit:
        rows = rows[:limit]

    return {
        "season_id": season_filter,
        "season_name": season.name if season else None,
        "count": len(rows),
        "standings": rows,
    }


# =============================================================================
# PLAYER STATS
# =============================================================================

@app.get("/stats/players", response_model=schemas.PlayerLeaderboard)
def player_leaderboard(
    season_id: Optional[int] = Query(None, description="Defaults to the active season"),
    stat: str = Query("goals", description="goals, assists, yellow_cards, red_cards or appearances"),
    limit: Optional[int] = Query(10, ge=1),
    db: Session = Depends(get_db),
):
    """Top scorers (or assists, cards, appearances) from completed matches."""
    season = _season_or_active(db, season_id)
    season_filter = season.id if season else None

    matches = crud.get_completed_matches(db, season_id=season_filter)
    player_ids = {e.player_id for m in matches for e in m.events if e.player_id is not None}
    players = {p.id: p for p in crud.get_players_by_ids(db, player_ids)}

    rows = rank_players(compute_player_stats(matches, players).values(), stat=stat, limit=limit)
    return {
        "season_id": season_filter,
        "season_name": season.name if season else None,
        "stat": stat,
        "count": len(rows),
        "players": rows,
    }

"""
Admin write endpoints for seasons, teams, players and matches.
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from league import crud, schemas
from league.db import get_db
from league.dependencies import require_operator
from league.errors import NotFoundError
from league.live_match.clock import Clock, get_clock

router = APIRouter(dependencies=[Depends(require_operator)], tags=["admin"])


def _found(obj, label: str, obj_id: int):
    if obj is None:
        raise NotFoundError(f"{label} {obj_id} not found")
    return obj


# ===== SEASONS =====

@router.post("/seasons", response_model=schemas.Season, status_code=201)
def create_season(payload: schemas.SeasonCreate, db: Session = Depends(get_db)):
    return crud.create_season(db, payload.model_dump())


@router.patch("/seasons/{season_id}", response_model=schemas.Season)
def update_season(season_id: int, payload: schemas.SeasonUpdate, db: Session = Depends(get_db)):
    season = _found(crud.get_season_by_id(db, season_id), "Season", season_id)
    return crud.update_season(db, season, payload.model_dump(exclude_unset=True))


@router.delete("/seasons/{season_id}", status_code=204)
def delete_season(season_id: int, db: Session = Depends(get_db)):
    season = _found(crud.get_season_by_id(db, season_id), "Season", season_id)
    crud.delete_season(db, season)
    return Response(status_code=204)


# ===== TEAMS =====

@router.post("/teams", response_model=schemas.Team, status_code=201)
def create_team(payload: schemas.TeamCreate, db: Session = Depends(get_db)):
    return crud.create_team(db, payload.model_dump())


@router.patch("/teams/{team_id}", response_model=schemas.Team)
def update_team(team_id: int, payload: schemas.TeamUpdate, db: Session = Depends(get_db)):
    team = _found(crud.get_team_by_id(db, team_id), "Team", team_id)
    return crud.update_team(db, team, payload.model_dump(exclude_unset=True))


@router.delete("/teams/{team_id}", status_code=204)
def delete_team(team_id: int, db: Session = Depends(get_db)):
    team = _found(crud.get_team_by_id(db, team_id), "Team", team_id)
    crud.delete_team(db, team)
    return Response(status_code=204)


# ===== PLAYERS =====

@router.post("/players", response_model=schemas.Player, status_code=201)
def create_player(payload: schemas.PlayerCreate, db: Session = Depends(get_db)):
    player = crud.create_player(db, payload.model_dump())
    return crud.get_player_by_id(db, player.id)


@router.patch("/players/{player_id}", response_model=schemas.Player)
def update_player(player_id: int, payload: schemas.PlayerUpdate, db: Session = Depends(get_db)):
    player = _found(crud.get_player_by_id(db, player_id), "Player", player_id)
    crud.update_player(db, player, payload.model_dump(exclude_unset=True))
    return crud.get_player_by_id(db, player_id)


@router.delete("/players/{player_id}", status_code=204)
def delete_player(player_id: int, db: Session = Depends(get_db)):
    player = _found(crud.get_player_by_id(db, player_id), "Player", player_id)
    crud.delete_player(db, player)
    return Response(status_code=204)


# ===== MATCHES =====

@router.post("/matches", response_model=schemas.MatchWriteResult, status_code=201)
def create_match(
    payload: schemas.MatchCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Create a fixture, or enter a finished result directly (status=completed).

    Soft problems (e.g. a completed match without events) come back as
    warnings next to the saved match.
    """
    data = payload.model_dump(exclude={"events"})
    data["events"] = payload.events
    match, report = crud.create_match(db, data, clock.now())
    return schemas.MatchWriteResult(match=schemas.Match.model_validate(match), warnings=report.warnings)


@router.patch("/matches/{match_id}", response_model=schemas.MatchWriteResult)
def update_match(
    match_id: int,
    payload: schemas.MatchUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    match = crud.require_match(db, match_id)
    data = payload.model_dump(exclude_unset=True, exclude={"events"})
    if "events" in payload.model_fields_set:
        data["events"] = payload.events or []
    match, report = crud.update_match(db, match, data, clock.now())
    return schemas.MatchWriteResult(match=schemas.Match.model_validate(match), warnings=report.warnings)


@router.delete("/matches/{match_id}", status_code=204)
def delete_match(match_id: int, db: Session = Depends(get_db)):
    match = crud.require_match(db, match_id)
    crud.delete_match(db, match)
    return Response(status_code=204)

"""
Live match endpoints.

Operator calls (start, pause, events, undo, end, sync, ...) require
require_operator; the two GET endpoints are public so spectator pages can
poll them.
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends

from league import schemas
from league.dependencies import get_live_service, require_operator
from league.live_match.service import LiveMatchService

router = APIRouter(tags=["live"])

operator = [Depends(require_operator)]


def _version(body: Optional[schemas.LiveControl]) -> Optional[int]:
    return body.expected_version if body else None


@router.get("/matches/live", response_model=List[schemas.LiveState])
def live_matches(service: LiveMatchService = Depends(get_live_service)):
    """All matches currently in progress."""
    return service.list_live()


@router.get("/matches/{match_id}/live", response_model=schemas.LiveState)
def live_state(match_id: int, service: LiveMatchService = Depends(get_live_service)):
    """Current score, minute and ledger of a match."""
    return service.get_state(match_id)


@router.post("/matches/{match_id}/live/start", response_model=schemas.LiveState, dependencies=operator)
def start_match(
    match_id: int,
    body: Optional[schemas.LiveControl] = Body(None),
    service: LiveMatchService = Depends(get_live_service),
):
    """Kick off a scheduled match (kickoff must be within 24h of now)."""
    return service.start(match_id, _version(body))


@router.post("/matches/{match_id}/live/pause", response_model=schemas.LiveState, dependencies=operator)
def pause_match(
    match_id: int,
    body: Optional[schemas.LiveControl] = Body(None),
    service: LiveMatchService = Depends(get_live_service),
):
    return service.pause(match_id, _version(body))


@router.post("/matches/{match_id}/live/resume", response_model=schemas.LiveState, dependencies=operator)
def resume_match(
    match_id: int,
    body: Optional[schemas.LiveControl] = Body(None),
    service: LiveMatchService = Depends(get_live_service),
):
    return service.resume(match_id, _version(body))


@router.post("/matches/{match_id}/live/events", response_model=schemas.LiveEventResult, dependencies=operator)
def record_event(
    match_id: int,
    body: schemas.LiveEventRequest,
    service: LiveMatchService = Depends(get_live_service),
):
    """Record a goal, card, substitution, ... Minute defaults to the match clock."""
    return service.record_event(match_id, body, body.expected_version)


@router.post("/matches/{match_id}/live/score", response_model=schemas.LiveState, dependencies=operator)
def change_score(
    match_id: int,
    body: schemas.LiveScoreRequest,
    service: LiveMatchService = Depends(get_live_service),
):
    """Adjust a score by one without recording an event."""
    return service.change_score(match_id, body.team, body.delta, body.expected_version)


@router.post("/matches/{match_id}/live/undo", response_model=schemas.LiveEventResult, dependencies=operator)
def undo_last_event(
    match_id: int,
    body: Optional[schemas.LiveControl] = Body(None),
    service: LiveMatchService = Depends(get_live_service),
):
    """Remove the most recently recorded event. 409 when there is none."""
    return service.undo(match_id, _version(body))


@router.post("/matches/{match_id}/live/end", response_model=schemas.LiveState, dependencies=operator)
def end_match(
    match_id: int,
    body: schemas.LiveEndRequest,
    service: LiveMatchService = Depends(get_live_service),
):
    """Finish a live match with the final scores (and optionally events)."""
    return service.end(
        match_id,
        body.home_score,
        body.away_score,
        events=body.events,
        expected_version=body.expected_version,
    )


@router.put("/matches/{match_id}/live/sync", response_model=schemas.LiveState, dependencies=operator)
def sync_match(
    match_id: int,
    body: schemas.LiveSyncRequest,
    service: LiveMatchService = Depends(get_live_service),
):
    """Periodic whole-state snapshot from the operator console."""
    return service.sync(match_id, body)


@router.post("/matches/{match_id}/postpone", response_model=schemas.LiveState, dependencies=operator)
def postpone_match(
    match_id: int,
    body: Optional[schemas.LiveControl] = Body(None),
    service: LiveMatchService = Depends(get_live_service),
):
    return service.postpone(match_id, _version(body))


@router.post("/matches/{match_id}/cancel", response_model=schemas.LiveState, dependencies=operator)
def cancel_match(
    match_id: int,
    body: Optional[schemas.LiveControl] = Body(None),
    service: LiveMatchService = Depends(get_live_service),
):
    return service.cancel(match_id, _version(body))

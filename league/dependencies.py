"""
FastAPI dependencies shared by the routers.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from config.settings import settings
from league.db import get_db
from league.live_match.clock import Clock, get_clock
from league.live_match.service import LiveMatchService


def require_operator(token: Optional[str] = Header(None, alias="X-Operator-Token")) -> bool:
    """
    Gate for admin and live-match writes.

    Session handling lives outside this service; all it checks is the
    shared operator token, and only when one is configured.
    """
    if settings.operator_token is None:
        return True
    if token != settings.operator_token:
        raise HTTPException(status_code=403, detail="Match operator access required")
    return True


def get_live_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> LiveMatchService:
    return LiveMatchService(db, clock)

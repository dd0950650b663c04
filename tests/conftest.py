"""
Shared fixtures: in-memory database, frozen clock and a seeded league.
"""
import pytest
from datetime import date, datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from league.db import get_db
from league.live_match.clock import FixedClock, get_clock
from league.main import app
from league.models import Base, Match, Season, Team

NOW = datetime(2025, 3, 15, 15, 0, 0)


def make_match(status="scheduled", match_date=None, **kwargs):
    """Transient match with every column the core reads filled in."""
    values = dict(
        id=1,
        home_team_id=1,
        away_team_id=2,
        season_id=1,
        match_date=match_date or NOW + timedelta(minutes=30),
        status=status,
        home_score=0,
        away_score=0,
        clock_running=False,
        clock_started_at=None,
        clock_elapsed_seconds=0.0,
    )
    values.update(kwargs)
    return Match(**values)


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def engine():
    """Fresh in-memory SQLite database shared by every session in a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def client(session_factory, clock):
    """TestClient wired to the in-memory database and the frozen clock."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Seed data
# =============================================================================

@pytest.fixture
def league(db):
    """One active season, two teams and a match kicking off in 30 minutes."""
    season = Season(
        name="2025 League",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 31),
        is_active=True,
    )
    home = Team(name="Harbour FC", season=season)
    away = Team(name="Valley United", season=season)
    db.add_all([season, home, away])
    db.commit()

    match = Match(
        home_team_id=home.id,
        away_team_id=away.id,
        season_id=season.id,
        match_date=NOW + timedelta(minutes=30),
        venue="Harbour Park",
    )
    db.add(match)
    db.commit()

    return {
        "season_id": season.id,
        "home_id": home.id,
        "away_id": away.id,
        "match_id": match.id,
    }

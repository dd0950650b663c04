"""
Database models for the league manager
SQLAlchemy ORM models for seasons, teams, players, matches and match events
"""
from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text,
    UniqueConstraint
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import declarative_base, relationship

from league.utils.helpers import utcnow

Base = declarative_base()


class Season(Base):
    """
    Season entity - one competition year (e.g., "2025 League")
    At most one season is active at a time
    """
    __tablename__ = "seasons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=False)
    max_teams = Column(Integer, nullable=False, default=16)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    teams = relationship("Team", back_populates="season")
    matches = relationship("Match", back_populates="season")

    def __repr__(self):
        return f"<Season(id={self.id}, name='{self.name}', active={self.is_active})>"


class Team(Base):
    """
    Team entity - unique team identities
    One record per team, referenced by players and matches
    """
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=True)
    founded_year = Column(Integer, nullable=True)
    manager = Column(String(100), nullable=False, default="")
    home_color = Column(String(20), nullable=False, default="#ffffff")
    away_color = Column(String(20), nullable=False, default="#000000")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    season = relationship("Season", back_populates="teams")
    players = relationship("Player", back_populates="team")
    home_matches = relationship("Match", foreign_keys="Match.home_team_id", back_populates="home_team")
    away_matches = relationship("Match", foreign_keys="Match.away_team_id", back_populates="away_team")

    def __repr__(self):
        return f"<Team(id={self.id}, name='{self.name}')>"


class Player(Base):
    """
    Player entity - registered squad member
    Jersey numbers are unique within a team
    """
    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    position = Column(String(20), nullable=False)
    jersey_number = Column(Integer, nullable=True)
    nationality = Column(String(60), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    team = relationship("Team", back_populates="players")

    # Constraints - one shirt number per team
    __table_args__ = (
        UniqueConstraint("team_id", "jersey_number", name="uix_player_team_jersey"),
    )

    def __repr__(self):
        return f"<Player(name='{self.name}', team_id={self.team_id}, number={self.jersey_number})>"


class Match(Base):
    """
    Match entity - one fixture, its score, live clock and event ledger

    `version` is bumped by every write (crud.touch_match); a concurrent write
    against a stale row raises StaleDataError.
    """
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    home_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False, index=True)
    match_date = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="scheduled", index=True)
    home_score = Column(Integer, nullable=False, default=0)
    away_score = Column(Integer, nullable=False, default=0)

    # Match details
    venue = Column(String(200), nullable=False, default="")
    round = Column(String(100), nullable=False, default="Regular Season")
    referee = Column(String(100), nullable=False, default="")
    notes = Column(Text, nullable=False, default="")

    # Server-side match clock
    clock_running = Column(Boolean, nullable=False, default=False)
    clock_started_at = Column(DateTime, nullable=True)
    clock_elapsed_seconds = Column(Float, nullable=False, default=0.0)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    home_team = relationship("Team", foreign_keys=[home_team_id], back_populates="home_matches")
    away_team = relationship("Team", foreign_keys=[away_team_id], back_populates="away_matches")
    season = relationship("Season", back_populates="matches")
    events = relationship(
        "MatchEvent",
        back_populates="match",
        order_by="MatchEvent.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version, "version_id_generator": False}

    def __repr__(self):
        return f"<Match(id={self.id}, status='{self.status}', score={self.home_score}-{self.away_score})>"


class MatchEvent(Base):
    """
    MatchEvent entity - one entry in a match's ledger
    Owned by its match; `event_id` is unique within the match only
    (kept by the ledger, not by a constraint, since snapshots replace
    the whole ledger in one flush)
    """
    __tablename__ = "match_events"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False, index=True)
    event_id = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False)
    type = Column(String(20), nullable=False)
    team = Column(String(4), nullable=False)  # home/away
    minute = Column(Integer, nullable=False, default=0)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    player_name = Column(String(100), nullable=False, default="")
    description = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    match = relationship("Match", back_populates="events")
    player = relationship("Player")

    def __repr__(self):
        return f"<MatchEvent(match_id={self.match_id}, type='{self.type}', team='{self.team}', minute={self.minute})>"

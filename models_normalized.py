# models_normalized.py

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from db import Base, utcnow  # <-- use the existing Base from db.py


def _uuid() -> str:
    return uuid.uuid4().hex


class League(Base):
    __tablename__ = "leagues"

    id = Column(Integer, primary_key=True)
    league_key = Column(String, nullable=False)  # e.g. "427.l.16794"
    league_id = Column(Integer)
    game_key = Column(String)
    season = Column(String, nullable=False)
    name = Column(String)
    url = Column(String)
    logo_url = Column(String)
    draft_status = Column(String)
    num_teams = Column(Integer)
    scoring_type = Column(String)
    league_type = Column(String)
    current_week = Column(Integer)
    end_week = Column(Integer)
    is_finished = Column(Boolean, default=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("league_key", name="uq_leagues_league_key"),
    )

    teams = relationship("Team", back_populates="league")
    matchups = relationship("Matchup", back_populates="league")


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True)
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False)
    team_key = Column(String, nullable=False)  # e.g. "427.l.16794.t.3"
    team_id = Column(Integer)
    season = Column(String, nullable=False)
    name = Column(String)
    url = Column(String)

    manager_nickname = Column(String)
    manager_image_url = Column(String)
    manager_is_commissioner = Column(Boolean, default=False)

    number_of_moves = Column(Integer, default=0)
    number_of_trades = Column(Integer, default=0)
    clinched_playoffs = Column(Boolean, default=False)

    # standings
    rank = Column(Integer)
    wins = Column(Integer, default=0)
    losses = Column(Integer, default=0)
    ties = Column(Integer, default=0)
    percentage = Column(Float)
    points_for = Column(Float)
    points_against = Column(Float)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("team_key", name="uq_teams_team_key"),
    )

    league = relationship("League", back_populates="teams")


class Matchup(Base):
    """
    One head-to-head pairing in one scoring week.

    Yahoo has no stable matchup id, so a matchup is identified by
    (league, week, team1_key, team2_key).
    """
    __tablename__ = "matchups"

    id = Column(Integer, primary_key=True)
    league_id = Column(Integer, ForeignKey("leagues.id"), nullable=False)
    season = Column(String, nullable=False)
    week = Column(Integer, nullable=False)
    status = Column(String)

    team1_key = Column(String, nullable=False)
    team2_key = Column(String, nullable=False)
    winner_team_key = Column(String, nullable=True)

    team1_points = Column(Float)
    team2_points = Column(Float)

    is_playoffs = Column(Boolean, default=False)
    is_consolation = Column(Boolean, default=False)
    is_tied = Column(Boolean, default=False)

    __table_args__ = (
        UniqueConstraint(
            "league_id",
            "week",
            "team1_key",
            "team2_key",
            name="uq_matchups_league_week_teams",
        ),
    )

    league = relationship("League", back_populates="matchups")


class DraftSession(Base):
    __tablename__ = "draft_sessions"

    id = Column(String, primary_key=True, default=_uuid)
    year = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="active")
    settings = Column(Text, nullable=False)  # JSON blob

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    picks = relationship(
        "DraftPick",
        back_populates="session",
        order_by="DraftPick.pick",
        cascade="all, delete-orphan",
    )
    snapshots = relationship(
        "DraftSnapshot",
        back_populates="session",
        cascade="all, delete-orphan",
    )


class DraftPick(Base):
    __tablename__ = "draft_picks"

    id = Column(Integer, primary_key=True)
    session_id = Column(String, ForeignKey("draft_sessions.id"), nullable=False, index=True)

    pick = Column(Integer, nullable=False)
    round = Column(Integer, nullable=False)
    team_index = Column(Integer, nullable=False)
    team_name = Column(String)

    player_name = Column(String)
    player_rank = Column(Integer)
    player_team = Column(String)
    player_position = Column(String)
    average_pick = Column(Float)
    picked_at = Column(DateTime, default=utcnow)

    session = relationship("DraftSession", back_populates="picks")


class DraftSnapshot(Base):
    """
    Full draft state captured on every save (used for undo).
    """
    __tablename__ = "draft_snapshots"

    id = Column(Integer, primary_key=True)
    session_id = Column(String, ForeignKey("draft_sessions.id"), nullable=False, index=True)
    snapshot_data = Column(Text, nullable=False)
    description = Column(String)

    created_at = Column(DateTime, default=utcnow)

    session = relationship("DraftSession", back_populates="snapshots")

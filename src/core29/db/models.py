"""ORM models for users, journeys, streaks, achievements, battles, and goals.

Column types stay portable: PostgreSQL in production, SQLite in tests.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    case,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core29.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users / locations
# ---------------------------------------------------------------------------


class User(Base):
    """Registered commuter, addressed by display name in battle challenges."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    avatar_color: Mapped[str] = mapped_column(String(16), nullable=False, default="#22c55e")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Location(Base):
    """Predefined place a journey may start or end at."""

    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="generic")
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)


# ---------------------------------------------------------------------------
# Journeys
# ---------------------------------------------------------------------------


class Journey(Base):
    """A single logged commute. Immutable once created."""

    __tablename__ = "journeys"
    __table_args__ = (
        CheckConstraint("distance_km > 0 AND distance_km <= 500", name="journeys_distance_range"),
        Index("idx_journeys_user_date", "user_id", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    journey_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False)
    mode: Mapped[str] = mapped_column(String(16), nullable=False)
    start_location_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("locations.id"), nullable=True)
    end_location_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("locations.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    result: Mapped[JourneyResult] = relationship("JourneyResult", back_populates="journey", uselist=False, lazy="joined")


class JourneyResult(Base):
    """Impact figures computed once at log time (1:1 with journeys)."""

    __tablename__ = "journey_results"

    journey_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("journeys.id", ondelete="CASCADE"), primary_key=True
    )
    time_min: Mapped[float] = mapped_column(Float, nullable=False)
    co2_g: Mapped[float] = mapped_column(Float, nullable=False)
    calories_kcal: Mapped[float] = mapped_column(Float, nullable=False)
    drive_time_min: Mapped[float] = mapped_column(Float, nullable=False)
    drive_co2_g: Mapped[float] = mapped_column(Float, nullable=False)
    vs_drive_co2_saved_g: Mapped[float] = mapped_column(Float, nullable=False)
    vs_drive_time_delta_min: Mapped[float] = mapped_column(Float, nullable=False)
    vs_drive_calories_delta_kcal: Mapped[float] = mapped_column(Float, nullable=False)

    journey: Mapped[Journey] = relationship("Journey", back_populates="result")


# ---------------------------------------------------------------------------
# Gamification
# ---------------------------------------------------------------------------


class Streak(Base):
    """Per-user consecutive-day streak. last_journey_date NULL means no record yet."""

    __tablename__ = "streaks"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_journey_date: Mapped[date | None] = mapped_column(Date, nullable=True)


class Achievement(Base):
    """Static achievement catalog entry."""

    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    icon: Mapped[str] = mapped_column(String(16), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    threshold_type: Mapped[str] = mapped_column(String(32), nullable=False)
    threshold_value: Mapped[float] = mapped_column(Float, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class UserAchievement(Base):
    """Achievements earned by users. UNIQUE(user_id, achievement_id) prevents duplicates."""

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="user_achievements_user_id_achievement_id_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    achievement_id: Mapped[int] = mapped_column(Integer, ForeignKey("achievements.id"), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class WeeklyGoal(Base):
    """Weekly CO2-saving target, one row per user per Monday."""

    __tablename__ = "weekly_goals"
    __table_args__ = (
        UniqueConstraint("user_id", "week_start", name="weekly_goals_user_id_week_start_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    target_co2_saved_g: Mapped[float] = mapped_column(Float, nullable=False)


# ---------------------------------------------------------------------------
# Competition
# ---------------------------------------------------------------------------


class Battle(Base):
    """Two-user CO2-saving challenge over a date window."""

    __tablename__ = "friend_battles"
    __table_args__ = (
        CheckConstraint("challenger_id <> opponent_id", name="friend_battles_distinct_users"),
        Index("idx_friend_battles_challenger", "challenger_id", "status"),
        Index("idx_friend_battles_opponent", "opponent_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    challenger_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    opponent_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    challenger_co2_saved_g: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    opponent_co2_saved_g: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    winner_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# At most one pending or active battle per unordered pair of users. CASE keeps
# the expression portable (SQLite has no LEAST/GREATEST).
_battles = Battle.__table__
_open_battle = text("status IN ('pending', 'active')")
Index(
    "uq_friend_battles_open_pair",
    case((_battles.c.challenger_id < _battles.c.opponent_id, _battles.c.challenger_id), else_=_battles.c.opponent_id),
    case((_battles.c.challenger_id < _battles.c.opponent_id, _battles.c.opponent_id), else_=_battles.c.challenger_id),
    unique=True,
    postgresql_where=_open_battle,
    sqlite_where=_open_battle,
)

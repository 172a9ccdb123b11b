from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column, Index
from sqlalchemy.types import JSON, BigInteger, Boolean, Date, DateTime, Integer, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from uuid6 import uuid7
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class GameSession(Base):
    """The puzzle a user is currently solving. At most one row per user."""

    __tablename__ = "game_sessions"
    id = Column(Uuid, primary_key=True, default=uuid7)
    user_id = Column(String(128), unique=True, nullable=False)
    board = Column(String(81), nullable=False)
    solution = Column(String(81), nullable=False)
    level = Column(Integer, nullable=False)
    techniques = Column(BigInteger, default=0)
    hint_used = Column(Boolean, nullable=False, default=False)
    hints_count = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime, nullable=False, default=utc_now)
    puzzle_type = Column(String(20), nullable=False)
    puzzle_id = Column(String(100), nullable=True)


class UserStats(Base):
    __tablename__ = "user_stats"
    user_id = Column(String(128), primary_key=True)
    total_points = Column(BigInteger, nullable=False, default=0)
    user_level = Column(Integer, nullable=False, default=0)
    games_completed = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now)


class PointTransaction(Base):
    """Append-only audit trail of point changes."""

    __tablename__ = "point_transactions"
    id = Column(Uuid, primary_key=True, default=uuid7)
    user_id = Column(String(128), nullable=False)
    points = Column(Integer, nullable=False)
    transaction_type = Column(String(50), nullable=False)
    # "metadata" is reserved on declarative classes
    transaction_metadata = Column("metadata", JSON().with_variant(JSONB(), "postgresql"))
    created_at = Column(DateTime, default=utc_now)

    __table_args__ = (
        Index("idx_point_transactions_user_id", "user_id"),
        Index("idx_point_transactions_created_at", "created_at"),
    )


class AccessLog(Base):
    __tablename__ = "access_logs"
    id = Column(Uuid, primary_key=True, default=uuid7)
    user_id = Column(String(128), nullable=False)
    endpoint = Column(String(50), nullable=False)
    access_date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=utc_now)

    __table_args__ = (
        Index("idx_access_logs_user_endpoint_date", "user_id", "endpoint", "access_date"),
    )

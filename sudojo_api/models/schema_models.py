from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime


class GameSessionSchema(BaseModel):
    id: UUID
    user_id: str
    board: str
    solution: str
    level: int
    techniques: Optional[int] = 0
    hint_used: bool
    hints_count: int
    started_at: datetime
    puzzle_type: str
    puzzle_id: Optional[str] = None

    class Config:
        from_attributes = True


class UserStatsSchema(BaseModel):
    user_id: str
    total_points: int
    user_level: int
    games_completed: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PointTransactionSchema(BaseModel):
    id: UUID
    user_id: str
    points: int
    transaction_type: str
    metadata: Optional[dict] = Field(default=None, validation_alias="transaction_metadata")
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


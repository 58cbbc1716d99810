from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SubmitRunRequest(BaseModel):
    # Stopwatch timestamps from the client, epoch milliseconds
    start: Optional[float] = None
    stop: Optional[float] = None
    # ...or an already measured duration
    duration_ms: Optional[float] = None


class CoachRunCreate(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    duration_ms: float


class CoachRunUpdate(BaseModel):
    username: Optional[str] = Field(default=None, max_length=64)
    duration_ms: Optional[float] = None


class RunOut(BaseModel):
    id: int
    username: str
    duration_ms: int
    created_at: datetime
    day_key: str

    model_config = {"from_attributes": True}


class CoachRunOut(RunOut):
    team: Optional[str] = None


class LeaderboardRowOut(BaseModel):
    index: int
    run_id: Optional[int] = None
    username: str
    team: Optional[str] = None
    duration_ms: int
    created_at: datetime

    model_config = {"from_attributes": True}


class LeaderboardOut(BaseModel):
    day: str
    order: str
    team: Optional[str] = None
    rows: list[LeaderboardRowOut]


class ScoreboardOut(BaseModel):
    scope: str  # "today" | "all_time"
    day: Optional[str] = None
    totals: dict[str, int]
    debug: Optional[dict] = None


class AverageOut(BaseModel):
    username: str
    scope: str  # "today" | "all_time"
    day: Optional[str] = None
    runs: int
    # None: no runs in scope (not the same as 0 ms)
    avg_ms: Optional[int] = None

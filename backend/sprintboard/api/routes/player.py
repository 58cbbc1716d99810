from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sprintboard.core.config import Settings
from sprintboard.core.security import get_current_user
from sprintboard.core.time import today_key
from sprintboard.crud import crud_run
from sprintboard.db.session import get_db, get_settings
from sprintboard.models.user import User
from sprintboard.schemas.runs import AverageOut, RunOut
from sprintboard.services.aggregation import user_average

router = APIRouter(prefix="/api/player", tags=["player"])


@router.get("/avg", response_model=AverageOut)
def my_average(
    scope: str = Query(default="all_time", pattern="^(all_time|today)$"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    day = today_key(settings.TIMEZONE) if scope == "today" else None
    runs = crud_run.list_runs(db, username=user.username_key, day_key=day)
    return AverageOut(
        username=user.username,
        scope=scope,
        day=day,
        runs=len(runs),
        avg_ms=user_average(runs, user.username_key),
    )


@router.get("/runs", response_model=list[RunOut])
def my_runs(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return crud_run.list_runs(db, username=user.username_key, newest_first=True)

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sprintboard.core.config import Settings
from sprintboard.core.errors import ValidationError
from sprintboard.core.roles import normalize_team
from sprintboard.core.security import get_current_user
from sprintboard.core.time import today_key
from sprintboard.crud import crud_run, crud_user
from sprintboard.db.session import get_db, get_settings
from sprintboard.models.user import User
from sprintboard.schemas.runs import LeaderboardOut, RunOut, ScoreboardOut, SubmitRunRequest
from sprintboard.services.aggregation import (
    ORDER_CHRONOLOGICAL,
    ORDER_FASTEST,
    duration_from_timestamps,
    leaderboard,
    team_breakdown,
    team_totals,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["runs"])

SCOPE_ALL_TIME = "all_time"


@router.post("/runs/submit", response_model=RunOut, status_code=201)
def submit_run(
    req: SubmitRunRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        if req.start is not None and req.stop is not None:
            ms = duration_from_timestamps(req.start, req.stop, settings.MIN_DURATION_MS, settings.MAX_DURATION_MS)
        elif req.duration_ms is not None:
            ms = req.duration_ms
        else:
            raise ValidationError("Send start and stop timestamps, or duration_ms")

        return crud_run.insert_run(db, settings, user.username_key, ms)
    except ValidationError as exc:
        logger.info("Run rejected for %s: %s", user.username_key, exc.detail)
        raise


def _team_param(team: str | None) -> str | None:
    try:
        return normalize_team(team)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


@router.get("/scoreboard", response_model=ScoreboardOut)
def scoreboard(
    debug: int = Query(default=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    scope = settings.TEAM_TOTALS_SCOPE
    day = None if scope == SCOPE_ALL_TIME else today_key(settings.TIMEZONE)

    runs = crud_run.list_runs(db, day_key=day)
    users = crud_user.list_users(db)

    out = ScoreboardOut(scope=scope, day=day, totals=team_totals(runs, users))
    if debug == 1:
        out.debug = team_breakdown(runs, users)
    return out


def _leaderboard(db: Session, settings: Settings, order: str, team: str | None) -> LeaderboardOut:
    team = _team_param(team)
    day = today_key(settings.TIMEZONE)
    runs = crud_run.list_runs(db, day_key=day)
    users = crud_user.list_users(db)
    rows = leaderboard(runs, users, order=order, team=team)
    return LeaderboardOut(day=day, order=order, team=team, rows=[asdict(r) for r in rows])


@router.get("/leaderboard", response_model=LeaderboardOut)
def leaderboard_fastest(
    team: str | None = Query(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return _leaderboard(db, settings, ORDER_FASTEST, team)


@router.get("/leaderboard/chronological", response_model=LeaderboardOut)
def leaderboard_chronological(
    team: str | None = Query(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return _leaderboard(db, settings, ORDER_CHRONOLOGICAL, team)

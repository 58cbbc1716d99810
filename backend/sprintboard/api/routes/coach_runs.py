from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sprintboard.core.config import Settings
from sprintboard.core.security import require_coach
from sprintboard.crud import crud_run, crud_user
from sprintboard.db.session import get_db, get_settings
from sprintboard.schemas.runs import CoachRunCreate, CoachRunOut, CoachRunUpdate, RunOut
from sprintboard.services.aggregation import team_map

router = APIRouter(prefix="/api/coach/runs", tags=["coach"])


@router.get("", response_model=list[CoachRunOut])
def list_all_runs(coach=Depends(require_coach), db: Session = Depends(get_db)):
    teams = team_map(crud_user.list_users(db))
    return [
        CoachRunOut(
            id=r.id,
            username=r.username,
            duration_ms=r.duration_ms,
            created_at=r.created_at,
            day_key=r.day_key,
            team=teams.get(r.username),
        )
        for r in crud_run.list_runs(db, newest_first=True)
    ]


@router.post("", response_model=RunOut, status_code=201)
def add_run(
    req: CoachRunCreate,
    coach=Depends(require_coach),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    # Any username is accepted; unknown ones just never count for a team
    return crud_run.insert_run(db, settings, req.username, req.duration_ms)


@router.patch("/{run_id}", response_model=RunOut)
def edit_run(
    run_id: int,
    req: CoachRunUpdate,
    coach=Depends(require_coach),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return crud_run.update_run(db, settings, run_id, username=req.username, duration_ms=req.duration_ms)


@router.delete("/{run_id}")
def remove_run(run_id: int, coach=Depends(require_coach), db: Session = Depends(get_db)):
    crud_run.delete_run(db, run_id)
    return {"ok": True, "id": run_id}

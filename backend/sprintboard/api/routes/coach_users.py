from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sprintboard.core.errors import ValidationError
from sprintboard.core.security import require_coach
from sprintboard.crud import crud_user
from sprintboard.db.session import get_db
from sprintboard.schemas.users import SetTeamRequest, UpdateUserRequest, UserOut

router = APIRouter(prefix="/api/coach", tags=["coach"])


@router.get("/users", response_model=list[UserOut])
def list_users(coach=Depends(require_coach), db: Session = Depends(get_db)):
    return crud_user.list_users(db)


@router.post("/update-user", response_model=UserOut)
def update_user(req: UpdateUserRequest, coach=Depends(require_coach), db: Session = Depends(get_db)):
    sent = req.model_fields_set
    if "role" not in sent and "team" not in sent:
        raise ValidationError("Nothing to update: send role and/or team")

    changes = {}
    if "role" in sent:
        changes["role"] = req.role
    if "team" in sent:
        changes["team"] = req.team
    return crud_user.update_user(db, req.username, **changes)


@router.post("/set-team", response_model=UserOut)
def set_team(req: SetTeamRequest, coach=Depends(require_coach), db: Session = Depends(get_db)):
    return crud_user.update_user(db, req.username, team=req.team)

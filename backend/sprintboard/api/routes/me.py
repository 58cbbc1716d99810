from fastapi import APIRouter, Depends

from sprintboard.core.security import get_current_user
from sprintboard.models.user import User
from sprintboard.schemas.auth import WhoAmIOut

router = APIRouter(prefix="/api", tags=["me"])


@router.get("/whoami", response_model=WhoAmIOut)
def whoami(user: User = Depends(get_current_user)):
    return WhoAmIOut(username=user.username, role=user.role, team=user.team)

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sprintboard.core.config import Settings
from sprintboard.core.errors import ValidationError
from sprintboard.core.roles import COMPETING_TEAMS, ROLE_PLAYER, TEAM_BLUE, TEAM_WHITE, normalize_username
from sprintboard.core.security import require_coach
from sprintboard.crud import crud_run, crud_user
from sprintboard.db.session import get_db, get_settings
from sprintboard.schemas.balance import (
    ConfirmedSplitOut,
    ConfirmSplitRequest,
    ProposalOut,
    ProposeSplitRequest,
    SideOut,
)
from sprintboard.services.aggregation import user_averages
from sprintboard.services.balance import PlayerAverage, confirm_split, impute_averages, propose_split

router = APIRouter(prefix="/api/coach/balance", tags=["coach"])


def _candidates(db: Session, req: ProposeSplitRequest):
    players = [u for u in crud_user.list_users(db) if u.role == ROLE_PLAYER]
    if req.usernames is not None:
        wanted = {normalize_username(u) for u in req.usernames}
        by_key = {u.username_key: u for u in players}
        missing = sorted(wanted - set(by_key))
        if missing:
            raise ValidationError(f"Not players: {', '.join(missing)}")
        return [by_key[k] for k in sorted(wanted)]
    if req.include_bench:
        return players
    return [u for u in players if u.team in COMPETING_TEAMS]


@router.post("/propose", response_model=ProposalOut)
def propose(
    req: ProposeSplitRequest,
    coach=Depends(require_coach),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Suggest Blue/White rosters. Nothing is written until /confirm."""
    candidates = _candidates(db, req)
    averages = user_averages(crud_run.list_runs(db))
    proposal = propose_split(
        [PlayerAverage(username=u.username_key, avg_ms=averages.get(u.username_key)) for u in candidates],
        quantum_ms=settings.BALANCE_QUANTUM_MS,
    )
    return ProposalOut(
        blue=SideOut(team=TEAM_BLUE, members=proposal.small.members, sum_ms=proposal.small.sum_ms),
        white=SideOut(team=TEAM_WHITE, members=proposal.large.members, sum_ms=proposal.large.sum_ms),
        delta_ms=proposal.delta_ms,
        averages=proposal.averages,
        imputed=proposal.imputed,
    )


@router.post("/confirm", response_model=ConfirmedSplitOut)
def confirm(req: ConfirmSplitRequest, coach=Depends(require_coach), db: Session = Depends(get_db)):
    blue, white = confirm_split(db, req.blue, req.white)

    # Same imputation as the proposal so the shown sums match it
    averages = user_averages(crud_run.list_runs(db))
    filled, _ = impute_averages(
        [PlayerAverage(username=u.username_key, avg_ms=averages.get(u.username_key)) for u in blue + white]
    )
    blue_sum = sum(filled[u.username_key] for u in blue)
    white_sum = sum(filled[u.username_key] for u in white)
    return ConfirmedSplitOut(
        blue=SideOut(team=TEAM_BLUE, members=[u.username_key for u in blue], sum_ms=blue_sum),
        white=SideOut(team=TEAM_WHITE, members=[u.username_key for u in white], sum_ms=white_sum),
        delta_ms=abs(blue_sum - white_sum),
    )

from typing import Optional

from pydantic import BaseModel


class ProposeSplitRequest(BaseModel):
    # Default: every player currently on Blue or White
    usernames: Optional[list[str]] = None
    include_bench: bool = False


class SideOut(BaseModel):
    team: str
    members: list[str]
    sum_ms: int


class ProposalOut(BaseModel):
    blue: SideOut
    white: SideOut
    delta_ms: int
    averages: dict[str, int]
    imputed: list[str]
    scope: str = "all_time"


class ConfirmSplitRequest(BaseModel):
    blue: list[str]
    white: list[str]


class ConfirmedSplitOut(BaseModel):
    ok: bool = True
    blue: SideOut
    white: SideOut
    delta_ms: int

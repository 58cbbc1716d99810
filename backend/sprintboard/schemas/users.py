from typing import Optional

from pydantic import BaseModel, Field


class UserOut(BaseModel):
    username: str
    role: str
    team: Optional[str] = None

    model_config = {"from_attributes": True}


class UpdateUserRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    role: Optional[str] = None
    team: Optional[str] = None


class SetTeamRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    team: Optional[str] = None

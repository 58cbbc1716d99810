from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=200)


class WhoAmIOut(BaseModel):
    ok: bool = True
    username: str
    role: str
    team: str | None = None

ROLE_PLAYER = "player"
ROLE_COACH = "coach"

ALL_ROLES = {ROLE_PLAYER, ROLE_COACH}

TEAM_BLUE = "Blue"
TEAM_WHITE = "White"

# Teams that score; a user with team None is on the bench
COMPETING_TEAMS = (TEAM_BLUE, TEAM_WHITE)

_NO_TEAM = {"", "none", "null", "bench"}


def normalize_role(value) -> str | None:
    role = str(value or "").strip().lower()
    return role if role in ALL_ROLES else None


def normalize_team(value) -> str | None:
    """Map free-form input to "Blue", "White" or None.

    Raises ValueError for anything that is neither a team nor a bench marker.
    """
    if value is None:
        return None
    t = str(value).strip().lower()
    if t in _NO_TEAM:
        return None
    for team in COMPETING_TEAMS:
        if t == team.lower():
            return team
    raise ValueError(f"Invalid team: {value!r}")


def normalize_username(value) -> str:
    return str(value or "").strip().lower()

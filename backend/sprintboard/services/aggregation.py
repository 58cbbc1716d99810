# sprintboard/services/aggregation.py
"""Scoreboard, averages and leaderboards.

Pure functions over ``Run`` and ``User`` instances: callers load the rows,
these reduce them. Team membership is always looked up from the users passed
in, never stored on a run, so a team change shows up on the next read for
old runs too.
"""
from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sprintboard.core.errors import DurationOutOfRange, ValidationError
from sprintboard.core.roles import COMPETING_TEAMS, normalize_username
from sprintboard.core.time import as_utc
from sprintboard.models.run import Run
from sprintboard.models.user import User

ORDER_FASTEST = "fastest"
ORDER_CHRONOLOGICAL = "chronological"


def validate_duration(duration_ms, min_ms: int, max_ms: int) -> int:
    if isinstance(duration_ms, bool) or not isinstance(duration_ms, (int, float)):
        raise ValidationError("duration_ms must be a number")
    if isinstance(duration_ms, float) and not math.isfinite(duration_ms):
        raise ValidationError("duration_ms must be a finite number")
    ms = int(round(duration_ms))
    if ms < min_ms or ms > max_ms:
        raise DurationOutOfRange(f"Unreasonable time: {ms} ms (allowed {min_ms}-{max_ms} ms)")
    return ms


def duration_from_timestamps(start: float, stop: float, min_ms: int, max_ms: int) -> int:
    """Turn client stopwatch timestamps (epoch ms) into a checked duration."""
    if stop <= start:
        raise ValidationError("Invalid timestamps: stop must be after start")
    return validate_duration(stop - start, min_ms, max_ms)


def team_map(users: Iterable[User]) -> Dict[str, Optional[str]]:
    """username_key -> current team (None for bench)."""
    return {u.username_key: (u.team if u.team in COMPETING_TEAMS else None) for u in users}


def _in_scope(run: Run, day_key: Optional[str]) -> bool:
    return day_key is None or run.day_key == day_key


def team_totals(runs: Iterable[Run], users: Iterable[User], day_key: Optional[str] = None) -> Dict[str, int]:
    """Sum run durations per competing team.

    ``day_key=None`` sums all time. Runs whose username has no user, or whose
    user is on the bench, are skipped.
    """
    teams = team_map(users)
    totals = {team: 0 for team in COMPETING_TEAMS}
    for r in runs:
        if not _in_scope(r, day_key) or r.duration_ms <= 0:
            continue
        team = teams.get(normalize_username(r.username))
        if team is not None:
            totals[team] += int(r.duration_ms)
    return totals


def team_breakdown(runs: Iterable[Run], users: Iterable[User], day_key: Optional[str] = None) -> dict:
    """Diagnostics behind team_totals: who maps where and what was skipped."""
    users = list(users)
    teams = team_map(users)
    per_user: Dict[str, int] = defaultdict(int)
    unknown: List[str] = []
    for r in runs:
        if not _in_scope(r, day_key):
            continue
        uname = normalize_username(r.username)
        per_user[uname] += int(r.duration_ms)
        if teams.get(uname) is None and uname not in unknown:
            unknown.append(uname)

    out = {
        "users_mapped": len(teams),
        "unknown_users": unknown,
        "totals_by_user": dict(per_user),
    }
    for team in COMPETING_TEAMS:
        out[f"{team.lower()}_users"] = sorted(u for u, t in teams.items() if t == team)
    return out


def mean_ms(values: List[int]) -> Optional[int]:
    """Arithmetic mean rounded to the nearest millisecond, halves up."""
    if not values:
        return None
    n = len(values)
    return (2 * sum(values) + n) // (2 * n)


def user_average(runs: Iterable[Run], username: str, day_key: Optional[str] = None) -> Optional[int]:
    """Mean duration of one user's runs; None means the user has no runs."""
    key = normalize_username(username)
    durations = [
        int(r.duration_ms)
        for r in runs
        if normalize_username(r.username) == key and r.duration_ms > 0 and _in_scope(r, day_key)
    ]
    return mean_ms(durations)


def user_averages(runs: Iterable[Run], day_key: Optional[str] = None) -> Dict[str, int]:
    """Mean per username for every user that has at least one run."""
    by_user: Dict[str, List[int]] = defaultdict(list)
    for r in runs:
        if r.duration_ms > 0 and _in_scope(r, day_key):
            by_user[normalize_username(r.username)].append(int(r.duration_ms))
    return {u: mean_ms(v) for u, v in by_user.items()}


@dataclass
class LeaderboardRow:
    index: int  # n-th run of this user within the scope, from 1
    run_id: Optional[int]
    username: str
    team: Optional[str]
    duration_ms: int
    created_at: datetime


def _chrono_key(r: Run):
    return (as_utc(r.created_at), r.id or 0)


def leaderboard(
    runs: Iterable[Run],
    users: Iterable[User],
    order: str = ORDER_FASTEST,
    team: Optional[str] = None,
) -> List[LeaderboardRow]:
    """Rank runs and number each user's runs within the result.

    ``fastest``: shortest duration first (ties by submission time), index
    counted over that sorted order. ``chronological``: submission order,
    index is the user's sprint number. With ``team`` only that team's runs
    are kept, and numbering is within what is kept.
    """
    users = list(users)
    teams = team_map(users)
    display = {u.username_key: u.username for u in users}

    rows = list(runs)
    if team is not None:
        rows = [r for r in rows if teams.get(normalize_username(r.username)) == team]

    if order == ORDER_FASTEST:
        rows.sort(key=lambda r: (r.duration_ms, *_chrono_key(r)))
    elif order == ORDER_CHRONOLOGICAL:
        rows.sort(key=_chrono_key)
    else:
        raise ValidationError(f"Unknown leaderboard order: {order}")

    counters: Dict[str, int] = defaultdict(int)
    out: List[LeaderboardRow] = []
    for r in rows:
        uname = normalize_username(r.username)
        counters[uname] += 1
        out.append(
            LeaderboardRow(
                index=counters[uname],
                run_id=r.id,
                username=display.get(uname, uname),
                team=teams.get(uname),
                duration_ms=int(r.duration_ms),
                created_at=as_utc(r.created_at),
            )
        )
    return out

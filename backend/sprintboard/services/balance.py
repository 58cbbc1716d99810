# sprintboard/services/balance.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from sprintboard.core.errors import NotEnoughPlayers, ValidationError
from sprintboard.core.roles import ROLE_PLAYER, TEAM_BLUE, TEAM_WHITE, normalize_username
from sprintboard.crud import crud_user
from sprintboard.services.aggregation import mean_ms

logger = logging.getLogger(__name__)


@dataclass
class PlayerAverage:
    username: str
    avg_ms: Optional[int]  # None: no runs yet


@dataclass
class Side:
    members: List[str] = field(default_factory=list)
    sum_ms: int = 0


@dataclass
class SplitProposal:
    small: Side  # floor(n/2) players
    large: Side  # ceil(n/2) players
    delta_ms: int
    averages: Dict[str, int]  # after imputation
    imputed: List[str]


def impute_averages(players: Sequence[PlayerAverage]) -> Tuple[Dict[str, int], List[str]]:
    """Give players without runs the mean of the known averages (0 if none)."""
    known = [p.avg_ms for p in players if p.avg_ms is not None]
    fill = mean_ms(known) or 0
    out: Dict[str, int] = {}
    imputed: List[str] = []
    for p in players:
        if p.avg_ms is None:
            out[p.username] = fill
            imputed.append(p.username)
        else:
            out[p.username] = p.avg_ms
    return out, imputed


def _quantize(ms: int, quantum: int) -> int:
    return (ms + quantum // 2) // quantum


def best_k_subset(weights: Sequence[int], k: int) -> List[int]:
    """Indices of exactly k weights whose sum is closest to half the total.

    Table over (count picked, sum reached). Each state keeps the first item
    that reached it; that item is always later than every item used to reach
    its predecessor, so following the pointers never reuses an item.
    """
    total = sum(weights)
    # reach[c]: sum -> (item index, previous sum)
    reach: List[Dict[int, Tuple[int, int]]] = [dict() for _ in range(k + 1)]
    reach[0][0] = (-1, 0)
    for i, w in enumerate(weights):
        for c in range(min(i + 1, k), 0, -1):
            for s in list(reach[c - 1]):
                if s + w not in reach[c]:
                    reach[c][s + w] = (i, s)

    best = min(reach[k], key=lambda s: (abs(2 * s - total), s))

    picked: List[int] = []
    c, s = k, best
    while c > 0:
        i, prev = reach[c][s]
        picked.append(i)
        c, s = c - 1, prev
    return sorted(picked)


def propose_split(players: Sequence[PlayerAverage], quantum_ms: int = 10) -> SplitProposal:
    """Two sides of floor(n/2) and ceil(n/2) players with close summed averages.

    Averages are compared in ``quantum_ms`` units; reported sums are exact.
    """
    if len(players) < 2:
        raise NotEnoughPlayers("Need at least 2 players to balance teams")
    if quantum_ms <= 0:
        raise ValidationError("quantum_ms must be positive")

    ordered = sorted(players, key=lambda p: p.username)
    averages, imputed = impute_averages(ordered)

    names = [p.username for p in ordered]
    weights = [_quantize(averages[u], quantum_ms) for u in names]
    k = len(names) // 2
    chosen = set(best_k_subset(weights, k))

    small = Side(members=[u for i, u in enumerate(names) if i in chosen])
    large = Side(members=[u for i, u in enumerate(names) if i not in chosen])
    small.sum_ms = sum(averages[u] for u in small.members)
    large.sum_ms = sum(averages[u] for u in large.members)

    return SplitProposal(
        small=small,
        large=large,
        delta_ms=abs(small.sum_ms - large.sum_ms),
        averages=averages,
        imputed=imputed,
    )


def confirm_split(db: Session, blue: Sequence[str], white: Sequence[str]) -> Tuple[List, List]:
    """Write a coach-approved split back to the users.

    Every name must be an existing player and appear on exactly one side.
    Because teams are read at aggregation time, this also moves all of those
    players' past runs to their new team.
    """
    blue_keys = [normalize_username(u) for u in blue]
    white_keys = [normalize_username(u) for u in white]
    everyone = blue_keys + white_keys
    if len(everyone) < 2:
        raise NotEnoughPlayers("Need at least 2 players to balance teams")
    if len(set(everyone)) != len(everyone):
        raise ValidationError("A player appears more than once in the split")
    if abs(len(blue_keys) - len(white_keys)) > 1:
        raise ValidationError("Team sizes may differ by at most one")

    users = {u.username_key: u for u in crud_user.list_users(db)}
    for key in everyone:
        u = users.get(key)
        if u is None:
            raise ValidationError(f"Unknown user in split: {key}")
        if u.role != ROLE_PLAYER:
            raise ValidationError(f"Only players can be assigned by the balancer: {key}")

    for key in blue_keys:
        users[key].team = TEAM_BLUE
    for key in white_keys:
        users[key].team = TEAM_WHITE
    db.commit()

    logger.info("Balanced teams applied: Blue=%s White=%s", blue_keys, white_keys)
    return [users[k] for k in blue_keys], [users[k] for k in white_keys]

# sprintboard/crud/crud_run.py
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sprintboard.core.config import Settings
from sprintboard.core.errors import DailyCapExceeded, NotFound, UpstreamFailure, ValidationError
from sprintboard.core.roles import normalize_username
from sprintboard.core.time import as_utc, day_key, utcnow
from sprintboard.models.run import Run
from sprintboard.services.aggregation import validate_duration

logger = logging.getLogger(__name__)

# Concurrent writers for the same user/day can pick the same slot; the loser
# of the unique constraint tries again with a fresh read.
SLOT_ATTEMPTS = 3


def list_runs(
    db: Session,
    username: Optional[str] = None,
    day_key: Optional[str] = None,
    newest_first: bool = False,
) -> list[Run]:
    q = db.query(Run)
    if username is not None:
        q = q.filter(Run.username == normalize_username(username))
    if day_key is not None:
        q = q.filter(Run.day_key == day_key)
    if newest_first:
        q = q.order_by(Run.created_at.desc(), Run.id.desc())
    else:
        q = q.order_by(Run.created_at.asc(), Run.id.asc())
    return q.all()


def get_run(db: Session, run_id: int) -> Run:
    run = db.query(Run).filter(Run.id == run_id).one_or_none()
    if run is None:
        raise NotFound(f"Run not found: {run_id}")
    return run


def _free_slot(db: Session, username: str, dk: str, cap: int, exclude_id: Optional[int] = None) -> Optional[int]:
    q = db.query(Run.day_slot).filter(Run.username == username, Run.day_key == dk)
    if exclude_id is not None:
        q = q.filter(Run.id != exclude_id)
    used = {slot for (slot,) in q.all()}
    for slot in range(1, cap + 1):
        if slot not in used:
            return slot
    return None


def _commit_in_free_slot(db: Session, cap: int, build: Callable[[], Run]) -> Run:
    for attempt in range(1, SLOT_ATTEMPTS + 1):
        run = build()
        # A reassigned run is dirty here; flushing it before a slot is chosen would
        # collide on its old slot number
        with db.no_autoflush:
            slot = _free_slot(db, run.username, run.day_key, cap, exclude_id=run.id)
        if slot is None:
            db.rollback()
            raise DailyCapExceeded(run.username, run.day_key, cap)

        run.day_slot = slot
        db.add(run)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Slot %s for %s on %s taken concurrently (attempt %s/%s)",
                slot, run.username, run.day_key, attempt, SLOT_ATTEMPTS,
            )
            continue
        db.refresh(run)
        return run

    raise UpstreamFailure("Could not record the run, please retry")


def insert_run(
    db: Session,
    settings: Settings,
    username: str,
    duration_ms,
    now: Optional[datetime] = None,
) -> Run:
    key = normalize_username(username)
    if not key:
        raise ValidationError("username required")
    ms = validate_duration(duration_ms, settings.MIN_DURATION_MS, settings.MAX_DURATION_MS)

    created_at = as_utc(now) if now is not None else utcnow()
    dk = day_key(created_at, settings.TIMEZONE)

    def build() -> Run:
        return Run(username=key, duration_ms=ms, created_at=created_at, day_key=dk)

    run = _commit_in_free_slot(db, settings.DAILY_RUN_CAP, build)
    logger.info("Run %s recorded: %s %s ms (slot %s on %s)", run.id, key, ms, run.day_slot, dk)
    return run


def update_run(
    db: Session,
    settings: Settings,
    run_id: int,
    username: Optional[str] = None,
    duration_ms=None,
) -> Run:
    new_key = None
    if username is not None:
        new_key = normalize_username(username)
        if not new_key:
            raise ValidationError("username cannot be empty")
    ms = None
    if duration_ms is not None:
        ms = validate_duration(duration_ms, settings.MIN_DURATION_MS, settings.MAX_DURATION_MS)

    run = get_run(db, run_id)
    if new_key is None or new_key == run.username:
        if ms is not None:
            run.duration_ms = ms
        db.commit()
        db.refresh(run)
        return run

    # Moving the run to another user takes one of that user's slots for the day
    def build() -> Run:
        r = get_run(db, run_id)
        r.username = new_key
        if ms is not None:
            r.duration_ms = ms
        return r

    run = _commit_in_free_slot(db, settings.DAILY_RUN_CAP, build)
    logger.info("Run %s reassigned to %s", run.id, new_key)
    return run


def delete_run(db: Session, run_id: int) -> None:
    run = get_run(db, run_id)
    username, ms = run.username, run.duration_ms
    db.delete(run)
    db.commit()
    logger.info("Run %s deleted (%s, %s ms)", run_id, username, ms)

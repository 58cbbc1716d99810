from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, UniqueConstraint

from sprintboard.core.time import utcnow
from sprintboard.db.base import Base


class Run(Base):
    __tablename__ = "runs"

    id = Column(Integer, primary_key=True, index=True)

    # Lowercased username. Not a foreign key: runs of unknown users are kept
    username = Column(String(64), nullable=False, index=True)
    duration_ms = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Canonical calendar day ("2025-03-14") in settings.TIMEZONE at insert time
    day_key = Column(String(10), nullable=False, index=True)
    # 1..DAILY_RUN_CAP, one slot per run per user per day. The cap is a setting,
    # so only the lower bound is a table constraint; crud_run picks within the cap
    day_slot = Column(Integer, nullable=False)

    # The team is deliberately absent: it is read from the user's current
    # team every time runs are aggregated.

    __table_args__ = (
        UniqueConstraint("username", "day_key", "day_slot", name="uq_run_user_day_slot"),
        CheckConstraint("duration_ms > 0", name="ck_run_duration_positive"),
        CheckConstraint("day_slot >= 1", name="ck_run_day_slot_min"),
        Index("ix_run_day_created", "day_key", "created_at"),
    )

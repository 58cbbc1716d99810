from sqlalchemy import Column, DateTime, Integer, String

from sprintboard.core.time import utcnow
from sprintboard.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Display form as registered, e.g. "Alice"
    username = Column(String(64), nullable=False)
    # Lowercased form; runs reference users through this
    username_key = Column(String(64), unique=True, index=True, nullable=False)

    password_hash = Column(String, nullable=False)
    role = Column(String(16), nullable=False, default="player")
    team = Column(String(16), nullable=True)  # "Blue" | "White" | NULL (bench)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

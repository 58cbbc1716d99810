# sprintboard/crud/crud_user.py
import logging

from sqlalchemy.orm import Session

from sprintboard.core.errors import NotFound, ValidationError
from sprintboard.core.roles import ROLE_PLAYER, normalize_role, normalize_team, normalize_username
from sprintboard.core.security import hash_password
from sprintboard.models.user import User

logger = logging.getLogger(__name__)

# Distinguishes "field not sent" from "set team to None"
UNSET = object()


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.username_key.asc()).all()


def get_user(db: Session, username: str) -> User:
    user = db.query(User).filter(User.username_key == normalize_username(username)).one_or_none()
    if user is None:
        raise NotFound(f"User not found: {username}")
    return user


def _checked_role(role) -> str:
    nr = normalize_role(role)
    if nr is None:
        raise ValidationError(f"Invalid role: {role!r}")
    return nr


def _checked_team(team) -> str | None:
    try:
        return normalize_team(team)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


def create_user(db: Session, username: str, password: str, role: str = ROLE_PLAYER, team=None) -> User:
    display = (username or "").strip()
    if not display:
        raise ValidationError("username required")
    if not password:
        raise ValidationError("password required")

    key = normalize_username(display)
    if db.query(User).filter(User.username_key == key).first():
        raise ValidationError(f"User already exists: {display}")

    user = User(
        username=display,
        username_key=key,
        password_hash=hash_password(password),
        role=_checked_role(role),
        team=_checked_team(team),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (role=%s, team=%s)", key, user.role, user.team)
    return user


def update_user(db: Session, username: str, role=UNSET, team=UNSET) -> User:
    user = get_user(db, username)

    if role is not UNSET:
        user.role = _checked_role(role)
    if team is not UNSET:
        user.team = _checked_team(team)

    db.commit()
    db.refresh(user)
    logger.info("Updated user %s: role=%s team=%s", user.username_key, user.role, user.team)
    return user


def set_password(db: Session, username: str, new_password: str) -> User:
    if not new_password:
        raise ValidationError("Password cannot be empty")
    user = get_user(db, username)
    user.password_hash = hash_password(new_password)
    db.commit()
    return user

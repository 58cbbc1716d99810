import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from sprintboard.core.config import Settings
from sprintboard.core.errors import Forbidden, Unauthenticated
from sprintboard.core.roles import ROLE_COACH, normalize_role, normalize_team, normalize_username
from sprintboard.db.session import get_db, get_settings
from sprintboard.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


@dataclass(frozen=True)
class SessionIdentity:
    username: str
    role: str
    team: str | None


def create_access_token(settings: Settings, username: str, role: str, team: str | None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRE_MIN)
    to_encode = {"sub": username, "role": role, "team": team, "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def verify(settings: Settings, token: str | None) -> SessionIdentity | None:
    """Decode a session token, or return None.

    Fails closed: a bad signature, an expired or malformed token, a missing
    subject or an unknown role all give None, never a partial identity.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError:
        return None

    username = normalize_username(payload.get("sub"))
    role = normalize_role(payload.get("role"))
    if not username or role is None:
        return None
    try:
        team = normalize_team(payload.get("team"))
    except ValueError:
        return None
    return SessionIdentity(username=username, role=role, team=team)


bearer_scheme = HTTPBearer(auto_error=False)


def _credential(request: Request, creds: HTTPAuthorizationCredentials | None, settings: Settings) -> str | None:
    if creds is not None and creds.scheme.lower() == "bearer":
        return creds.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    identity = verify(settings, _credential(request, creds, settings))
    if identity is None:
        raise Unauthenticated("Invalid or missing session")

    # Role and team come from the store, not the token: they may have changed
    user = db.query(User).filter(User.username_key == identity.username).first()
    if not user:
        raise Unauthenticated("User not found")

    return user


def require_coach(user: User = Depends(get_current_user)) -> User:
    if user.role != ROLE_COACH:
        logger.info("Coach route refused for %s (role=%s)", user.username_key, user.role)
        raise Forbidden("Coach privileges required")
    return user

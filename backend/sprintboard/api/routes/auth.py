import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from sprintboard.core.config import Settings
from sprintboard.core.errors import Unauthenticated
from sprintboard.core.roles import normalize_username
from sprintboard.core.security import create_access_token, verify_password
from sprintboard.db.session import get_db, get_settings
from sprintboard.models.user import User
from sprintboard.schemas.auth import LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
def login(
    data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    key = normalize_username(data.username)
    user = db.query(User).filter(User.username_key == key).first()

    # Same answer for unknown user and wrong password
    if not user or not verify_password(data.password, user.password_hash):
        logger.info("Login failed for %s", key)
        raise Unauthenticated("Invalid credentials")

    token = create_access_token(settings, user.username_key, user.role, user.team)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        max_age=settings.JWT_EXPIRE_MIN * 60,
        path="/",
    )
    logger.info("Login ok for %s (role=%s)", key, user.role)

    return {
        "ok": True,
        "role": user.role,
        "access_token": token,
        "token_type": "bearer",
    }


@router.post("/logout")
def logout(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
    )
    return {"ok": True}

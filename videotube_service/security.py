# security.py
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.hash import bcrypt
from sqlalchemy.orm import Session

from videotube_service.config import settings
from videotube_service.db import get_db
from videotube_service.errors import Unauthorized
from videotube_service.models import User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    return bcrypt.verify(password, hashed)


def create_access_token(user: User) -> str:
    expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": user.id,
        "username": user.username,
        "email": user.email,
        "fullname": user.fullname,
        "exp": expire,
    }
    return jwt.encode(claims, settings.access_token_secret, algorithm=ALGORITHM)


def create_refresh_token(user: User) -> str:
    expire = datetime.utcnow() + timedelta(days=settings.refresh_token_expire_days)
    # jti keeps two tokens issued within the same second distinct
    claims = {"sub": user.id, "exp": expire, "jti": uuid.uuid4().hex}
    return jwt.encode(claims, settings.refresh_token_secret, algorithm=ALGORITHM)


def issue_tokens(db: Session, user: User):
    """Create a fresh token pair and store the refresh token as the only active one."""
    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user)
    user.refresh_token = refresh_token
    db.commit()
    logger.debug("[Auth] Tokens issued for user %s", user.id)
    return access_token, refresh_token


def decode_token(token: str, secret: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as exc:
        logger.warning("[Auth] Invalid token: %s", exc)
        raise Unauthorized("Invalid access token")
    if payload.get("sub") is None:
        raise Unauthorized("Invalid access token")
    return payload


def user_from_refresh_token(db: Session, token: Optional[str]) -> User:
    if not token:
        raise Unauthorized("Unauthorized request")
    try:
        payload = jwt.decode(token, settings.refresh_token_secret, algorithms=[ALGORITHM])
    except JWTError as exc:
        logger.warning("[Auth] Invalid refresh token: %s", exc)
        raise Unauthorized("Invalid refresh token")
    user = db.get(User, payload.get("sub"))
    if not user:
        raise Unauthorized("Invalid refresh token")
    if token != user.refresh_token:
        raise Unauthorized("Refresh token is expired or used")
    return user


def get_current_user(request: Request,
                     token: Optional[str] = Depends(oauth2_scheme),
                     db: Session = Depends(get_db)) -> User:
    token = token or request.cookies.get(ACCESS_COOKIE)
    if not token:
        raise Unauthorized("Unauthorized request")
    payload = decode_token(token, settings.access_token_secret)
    user = db.get(User, payload["sub"])
    if not user:
        raise Unauthorized("Invalid access token")
    return user

# utils/jwt_utils.py

import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from models.user import User
from db import get_db

logger = logging.getLogger(__name__)

# from the environment (default 60 minutes)
SECRET_KEY                  = os.getenv("SECRET_KEY", "change_this_in_production")
ALGORITHM                   = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
SESSION_COOKIE_NAME         = os.getenv("SESSION_COOKIE_NAME", "zipflow_session")

# cookie sessions are the fallback, so a missing header is not an error here
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def create_access_token(
    user_id: int,
    expires_delta: timedelta | None = None
) -> str:
    """
    Build a JWT carrying the user id as `sub`.
    Without expires_delta the ACCESS_TOKEN_EXPIRE_MINUTES setting applies.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    payload = {
        "sub": str(user_id),
        "exp": expire
    }
    token = jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)
    return token


def decode_access_token(token: str) -> Optional[int]:
    """Return the user id stored in a token, or None if it is invalid or expired."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    sub = payload.get("sub")
    if not sub:
        return None
    try:
        return int(sub)
    except ValueError:
        return None


def get_optional_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Authorization: Bearer <token>, or the session cookie set at login.
    Returns None when neither carries a valid session.
    """
    token = token or request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None

    user_id = decode_access_token(token)
    if user_id is None:
        logger.info("Rejected invalid or expired session token")
        return None

    return db.query(User).filter(User.id == user_id).first()


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

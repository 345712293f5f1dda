"""
Session tokens and the request dependencies that resolve the calling user.

A session is a signed JWT carrying the user id (`sub`) and email. It is read
from the Authorization header first, then from the session cookie.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from config import SESSION_ALGORITHM, SESSION_COOKIE_NAME, SESSION_SECRET, SESSION_TTL_HOURS
from database import get_db
from errors import NotFoundError, UnauthorizedError
from models import User
from utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

STATE_TTL_MINUTES = 10


@dataclass
class SessionInfo:
    user_id: str
    email: str


def create_session_token(user: User) -> str:
    now = utc_now()
    payload = {
        "sub": user.id,
        "email": user.email,
        "iat": now,
        "exp": now + timedelta(hours=SESSION_TTL_HOURS),
    }
    return jwt.encode(payload, SESSION_SECRET, algorithm=SESSION_ALGORITHM)


def decode_session_token(token: Optional[str]) -> SessionInfo:
    if not token:
        raise UnauthorizedError()
    try:
        payload = jwt.decode(token, SESSION_SECRET, algorithms=[SESSION_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Session expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid session")

    if payload.get("purpose") or not payload.get("sub"):
        raise UnauthorizedError("Invalid session")
    return SessionInfo(user_id=payload["sub"], email=payload.get("email"))


def sign_state(user_id: str, purpose: str) -> str:
    """Short-lived signed value for an OAuth round trip"""
    now = utc_now()
    payload = {
        "sub": user_id,
        "purpose": purpose,
        "iat": now,
        "exp": now + timedelta(minutes=STATE_TTL_MINUTES),
    }
    return jwt.encode(payload, SESSION_SECRET, algorithm=SESSION_ALGORITHM)


def verify_state(state: str, purpose: str) -> Optional[str]:
    """User id carried by a state value, or None when it is invalid, expired or for another flow"""
    try:
        payload = jwt.decode(state, SESSION_SECRET, algorithms=[SESSION_ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    if payload.get("purpose") != purpose:
        return None
    return payload.get("sub")


def get_session(request: Request,
                credentials: HTTPAuthorizationCredentials = Depends(security)) -> SessionInfo:
    """Verified session of the caller, or 401"""
    token = credentials.credentials if credentials else request.cookies.get(SESSION_COOKIE_NAME)
    return decode_session_token(token)


def get_current_user(session: SessionInfo = Depends(get_session),
                     db: Session = Depends(get_db)) -> User:
    """User row behind the session, or 404 when it no longer exists"""
    user = db.query(User).filter(User.id == session.user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user

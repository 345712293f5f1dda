"""
User database operations.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from config import BCRYPT_ROUNDS, PASSWORD_MIN_LENGTH, TRIAL_DAYS
from errors import ConflictError, InvalidRequestError
from models import User
from utils.datetime_utils import db_now

logger = logging.getLogger(__name__)


# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def create_user(db: Session, email: Optional[str], password: Optional[str],
                name: Optional[str] = None) -> User:
    """Register an email/password account on a fresh free trial"""
    if not email or not password:
        raise InvalidRequestError("Email and password are required")
    email = email.strip().lower()
    if len(password) < PASSWORD_MIN_LENGTH:
        raise InvalidRequestError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if get_user_by_email(db, email):
        raise ConflictError("User with this email already exists")

    now = db_now()
    user = User(
        name=name or email.split("@")[0],
        email=email,
        password=hash_password(password),
        subscription_tier="free_trial",
        subscription_status="active",
        trial_ends_at=now + timedelta(days=TRIAL_DAYS),
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created user {user.id} on a {TRIAL_DAYS}-day trial")
    return user


def authenticate(db: Session, email: Optional[str], password: Optional[str]) -> Optional[User]:
    if not email or not password:
        return None
    user = get_user_by_email(db, email.strip().lower())
    if not user or not verify_password(password, user.password):
        return None
    return user


def update_user(db: Session, user: User, fields: Dict[str, Any]) -> User:
    """Update profile fields; a changed email must stay unique"""
    if "email" in fields:
        new_email = (fields["email"] or "").strip().lower()
        if not new_email:
            raise InvalidRequestError("Email cannot be empty")
        if new_email != user.email:
            if get_user_by_email(db, new_email):
                raise ConflictError("User with this email already exists")
        user.email = new_email
    if "name" in fields:
        user.name = fields["name"]
    if "image" in fields:
        user.image = fields["image"]

    user.updated_at = db_now()
    db.commit()
    db.refresh(user)
    return user


def is_user_subscribed(user: User) -> bool:
    """Active paid period, or an active trial that has not ended"""
    if user.subscription_status != "active":
        return False
    now = db_now()
    if user.current_period_end:
        return now < user.current_period_end
    if user.trial_ends_at:
        return now < user.trial_ends_at
    return False

"""
Account request bodies and the public user representation.
"""
from typing import Any, Dict, Optional

from schemas.base_schema import RequestModel
from models import User
from utils.datetime_utils import iso


class SignupRequest(RequestModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class SigninRequest(RequestModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdate(RequestModel):
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None


def serialize_user(user: User) -> Dict[str, Any]:
    """User without credentials or OAuth tokens"""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "image": user.image,
        "subscriptionTier": user.subscription_tier,
        "subscriptionStatus": user.subscription_status,
        "trialEndsAt": iso(user.trial_ends_at),
        "currentPeriodEnd": iso(user.current_period_end),
        "gmailConnected": bool(user.gmail_connected),
        "gmailEmail": user.gmail_email,
        "createdAt": iso(user.created_at),
        "updatedAt": iso(user.updated_at),
    }

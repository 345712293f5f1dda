"""
Account routes: signup, signin, signout and the current session.
"""
import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from auth import create_session_token, get_current_user
from config import SESSION_COOKIE_NAME, SESSION_TTL_HOURS, is_production
from crud import users as users_crud
from database import get_db
from errors import UnauthorizedError, api_errors
from models import User
from schemas.user_schema import SigninRequest, SignupRequest, serialize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup")
@api_errors("Internal server error")
async def signup(body: SignupRequest, db: Session = Depends(get_db)):
    """Create an email/password account on a free trial"""
    user = users_crud.create_user(db, body.email, body.password, body.name)
    return {
        "success": True,
        "user": serialize_user(user),
        "message": "User created successfully",
    }


@router.post("/signin")
@api_errors("Internal server error")
async def signin(body: SigninRequest, response: Response, db: Session = Depends(get_db)):
    user = users_crud.authenticate(db, body.email, body.password)
    if not user:
        raise UnauthorizedError("Invalid credentials")

    token = create_session_token(user)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=SESSION_TTL_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=is_production(),
    )
    logger.info(f"User {user.id} signed in")
    return {"success": True, "token": token, "user": serialize_user(user)}


@router.post("/signout")
async def signout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"success": True}


@router.get("/session")
@api_errors("Failed to fetch session")
async def get_session_user(user: User = Depends(get_current_user)):
    return {
        "user": serialize_user(user),
        "isSubscribed": users_crud.is_user_subscribed(user),
    }

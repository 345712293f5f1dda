"""
Profile routes for the signed-in user.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from crud import users as users_crud
from database import get_db
from errors import api_errors
from models import User
from schemas.user_schema import UserUpdate, serialize_user

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("")
@api_errors("Failed to fetch user")
async def get_user(user: User = Depends(get_current_user)):
    return {"success": True, "user": serialize_user(user)}


@router.patch("")
@api_errors("Failed to update user")
async def update_user(body: UserUpdate, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    user = users_crud.update_user(db, user, body.present_fields())
    return {"success": True, "user": serialize_user(user)}

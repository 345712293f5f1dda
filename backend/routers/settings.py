"""
User settings: read with lazy defaults, partial update.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from auth import get_current_user
from crud import settings as settings_crud
from database import get_db
from errors import api_errors
from models import User
from schemas.settings_schema import SettingsUpdate, serialize_settings

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("")
@api_errors("Failed to fetch settings")
async def get_settings(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return serialize_settings(settings_crud.get_or_create_settings(db, user.id))


@router.patch("")
@api_errors("Failed to update settings")
async def update_settings(body: SettingsUpdate, request: Request, user: User = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    data = serialize_settings(settings_crud.update_settings(db, user.id, body.present_fields()))
    # Other open dashboards of the same user pick up the change
    await request.app.state.realtime.send_to_user(user.id, "settings:updated", data)
    return data

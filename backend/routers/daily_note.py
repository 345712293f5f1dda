"""
Free-form daily note content keyed by date.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from crud import notes as notes_crud
from database import get_db
from errors import InvalidRequestError, api_errors
from models import User
from schemas.note_schema import DailyNoteUpsert
from utils.datetime_utils import iso

router = APIRouter(prefix="/api/daily-note", tags=["daily-note"])


@router.get("")
@api_errors("Internal server error")
async def get_daily_note(date: Optional[str] = None, user: User = Depends(get_current_user),
                         db: Session = Depends(get_db)):
    day = notes_crud.require_date(date)
    note = notes_crud.get_or_create_daily_note(db, user.id, day)
    return {
        "id": note.id,
        "date": day.isoformat(),
        "content": note.content or "",
        "exists": True,
        "createdAt": iso(note.created_at),
        "updatedAt": iso(note.updated_at),
    }


@router.post("")
@api_errors("Internal server error")
async def save_daily_note(body: DailyNoteUpsert, user: User = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    if not body.date or body.content is None:
        raise InvalidRequestError("Date and content are required")
    day = notes_crud.require_date(body.date)
    note = notes_crud.upsert_daily_note(db, user.id, day, body.content)
    return {
        "success": True,
        "id": note.id,
        "date": day.isoformat(),
        "message": "Daily note saved successfully",
    }


@router.delete("")
@api_errors("Internal server error")
async def delete_daily_note(date: Optional[str] = None, user: User = Depends(get_current_user),
                            db: Session = Depends(get_db)):
    day = notes_crud.require_date(date)
    notes_crud.delete_daily_note(db, user.id, day)
    return {"success": True, "message": "Daily note deleted successfully"}

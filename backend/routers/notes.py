"""
Daily notes in page form, with their tasks as bullets.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth import get_current_user
from crud import notes as notes_crud
from database import get_db
from errors import api_errors
from models import DailyNote, User
from schemas.note_schema import serialize_daily_note
from schemas.task_schema import NoteItemCreate, NoteItemUpdate, serialize_note_item, serialize_task
from utils.datetime_utils import iso

router = APIRouter(prefix="/api/notes", tags=["notes"])


def serialize_note_page(db: Session, note: DailyNote, title: str):
    return {
        "id": note.id,
        "title": title,
        "createdAt": iso(note.created_at),
        "lastModified": iso(note.updated_at),
        "notes": [serialize_note_item(task) for task in notes_crud.get_note_tasks(db, note)],
    }


@router.get("")
@api_errors("Failed to fetch notes")
async def get_notes(date: Optional[str] = None, user: User = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    """With `date`, that day's note (created if missing); otherwise every daily note"""
    if date is not None:
        day = notes_crud.require_date(date)
        note = notes_crud.get_or_create_daily_note(db, user.id, day)
        return serialize_note_page(db, note, day.isoformat())

    return [serialize_daily_note(note) for note in notes_crud.list_daily_notes(db, user.id)]


@router.get("/search")
@api_errors("Failed to search notes")
async def search_notes(q: str = Query(""), user: User = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    notes = notes_crud.search_daily_notes(db, user.id, q)
    return [serialize_daily_note(note) for note in notes]


@router.post("", status_code=201)
@api_errors("Failed to create note")
async def create_note(body: NoteItemCreate, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    item = notes_crud.create_note_item(db, user.id, body.model_dump())
    return serialize_task(item)


@router.get("/{note_id}")
@api_errors("Failed to fetch note")
async def get_note(note_id: str, user: User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    note = notes_crud.get_daily_note(db, user.id, note_id)
    return serialize_note_page(db, note, note.date.isoformat())


@router.patch("/{note_id}")
@api_errors("Failed to update note")
async def update_note(note_id: str, body: NoteItemUpdate, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    item = notes_crud.update_note_item(db, user.id, note_id, body.present_fields())
    return serialize_task(item)


@router.delete("/{note_id}")
@api_errors("Failed to delete note")
async def delete_note(note_id: str, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    notes_crud.delete_note_item(db, user.id, note_id)
    return {"success": True}

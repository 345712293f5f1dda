"""
Daily note database operations.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from crud.tasks import parse_optional_datetime
from database import LIKE_ESCAPE, contains_pattern, insert_if_absent, load_owned
from errors import InvalidRequestError, NotFoundError
from models import DailyNote, Task
from utils.datetime_utils import db_now, parse_date

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20


def require_date(value: Optional[str]) -> date:
    if not value:
        raise InvalidRequestError("Date parameter is required")
    day = parse_date(value)
    if day is None:
        raise InvalidRequestError("Invalid date format, expected YYYY-MM-DD")
    return day


def get_or_create_daily_note(db: Session, user_id: str, day: date) -> DailyNote:
    """The user's note for `day`, created empty on first read"""
    return insert_if_absent(
        db, DailyNote,
        key={"user_id": user_id, "date": day},
        defaults={"content": "", "created_at": db_now(), "updated_at": db_now()},
    )


def get_daily_note(db: Session, user_id: str, note_id: str) -> DailyNote:
    return load_owned(db, DailyNote, note_id, user_id, label="Daily note")


def find_daily_note(db: Session, user_id: str, day: date) -> Optional[DailyNote]:
    return db.query(DailyNote).filter(
        DailyNote.user_id == user_id,
        DailyNote.date == day,
    ).first()


def list_daily_notes(db: Session, user_id: str) -> List[DailyNote]:
    return db.query(DailyNote).filter(
        DailyNote.user_id == user_id
    ).order_by(DailyNote.date.desc()).all()


def search_daily_notes(db: Session, user_id: str, query: str) -> List[DailyNote]:
    if not query:
        raise InvalidRequestError("Search query is required")
    return db.query(DailyNote).filter(
        DailyNote.user_id == user_id,
        DailyNote.content.ilike(contains_pattern(query), escape=LIKE_ESCAPE),
    ).order_by(DailyNote.date.desc()).limit(SEARCH_LIMIT).all()


def upsert_daily_note(db: Session, user_id: str, day: date, content: str) -> DailyNote:
    note = get_or_create_daily_note(db, user_id, day)
    note.content = content
    note.updated_at = db_now()
    db.commit()
    db.refresh(note)
    return note


def delete_daily_note(db: Session, user_id: str, day: date):
    note = find_daily_note(db, user_id, day)
    if note is None:
        raise NotFoundError("Daily note not found")
    # Bullets stay as plain tasks
    db.query(Task).filter(Task.daily_note_id == note.id).update(
        {Task.daily_note_id: None}, synchronize_session=False
    )
    db.delete(note)
    db.commit()


def get_note_tasks(db: Session, note: DailyNote) -> List[Task]:
    return db.query(Task).filter(
        Task.daily_note_id == note.id,
        Task.user_id == note.user_id,
    ).order_by(Task.created_at.asc()).all()


# ===== Bullets =====

def create_note_item(db: Session, user_id: str, data: Dict[str, Any]) -> Task:
    """Add a bullet to an owned daily note, stored as a task"""
    if not data.get("content") or not data.get("type") or not data.get("daily_note_id"):
        raise InvalidRequestError("Missing required fields")

    note = get_daily_note(db, user_id, data["daily_note_id"])
    completed = bool(data.get("completed") or False)
    item = Task(
        user_id=user_id,
        daily_note_id=note.id,
        title=data["content"],
        description=data["content"],
        type=data["type"],
        completed=completed,
        completed_at=db_now() if completed else None,
        extra_data={
            "parentId": data.get("parent_id"),
            "indent": data.get("indent") or 0,
            "linkedPages": data.get("linked_pages") or [],
        },
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_note_item(db: Session, user_id: str, item_id: str, fields: Dict[str, Any]) -> Task:
    item = load_owned(db, Task, item_id, user_id, label="Note")

    if fields.get("content"):
        item.title = fields["content"]
    if "description" in fields:
        item.description = fields["description"]
    if "metadata" in fields:
        item.extra_data = {**(item.extra_data or {}), **(fields["metadata"] or {})}
    if fields.get("completed") is not None:
        item.completed = fields["completed"]
        item.completed_at = db_now() if fields["completed"] else None
    if fields.get("priority"):
        item.priority = fields["priority"]
    if "due_date" in fields:
        item.due_date = parse_optional_datetime(fields["due_date"], "dueDate")

    item.updated_at = db_now()
    db.commit()
    db.refresh(item)
    return item


def delete_note_item(db: Session, user_id: str, item_id: str):
    item = load_owned(db, Task, item_id, user_id, label="Note")
    db.delete(item)
    db.commit()

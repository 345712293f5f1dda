"""
Daily note bodies and representation.
"""
from typing import Any, Dict, Optional

from schemas.base_schema import RequestModel
from models import DailyNote
from utils.datetime_utils import iso


class DailyNoteUpsert(RequestModel):
    date: Optional[str] = None
    content: Optional[str] = None


def serialize_daily_note(note: DailyNote) -> Dict[str, Any]:
    return {
        "id": note.id,
        "userId": note.user_id,
        "date": iso(note.date),
        "content": note.content or "",
        "metadata": note.extra_data,
        "createdAt": iso(note.created_at),
        "updatedAt": iso(note.updated_at),
    }

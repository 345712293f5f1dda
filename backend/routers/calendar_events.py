"""
Calendar events, stored as tasks with a calendar type.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from crud import tasks as tasks_crud
from database import get_db
from errors import api_errors
from models import Task, User
from schemas.task_schema import CalendarEventCreate, CalendarEventUpdate, serialize_task
from utils.datetime_utils import iso

router = APIRouter(prefix="/api/calendar-events", tags=["calendar"])


def serialize_event(event: Task):
    """Task representation plus the event's start and end"""
    data = serialize_task(event)
    data["start"] = iso(event.due_date)
    data["end"] = iso(tasks_crud.event_end(event))
    return data


@router.get("")
@api_errors("Failed to fetch events")
async def list_events(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [serialize_event(e) for e in tasks_crud.list_calendar_events(db, user.id)]


@router.post("", status_code=201)
@api_errors("Failed to create event")
async def create_event(body: CalendarEventCreate, user: User = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    event = tasks_crud.create_calendar_event(db, user.id, body.model_dump())
    return serialize_event(event)


@router.get("/{event_id}")
@api_errors("Failed to fetch event")
async def get_event(event_id: str, user: User = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    return serialize_event(tasks_crud.get_calendar_event(db, user.id, event_id))


@router.put("/{event_id}")
@api_errors("Failed to update event")
async def update_event(event_id: str, body: CalendarEventUpdate, user: User = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    event = tasks_crud.update_calendar_event(db, user.id, event_id, body.present_fields())
    return serialize_event(event)


@router.delete("/{event_id}")
@api_errors("Failed to delete event")
async def delete_event(event_id: str, user: User = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    tasks_crud.delete_calendar_event(db, user.id, event_id)
    return {"success": True}

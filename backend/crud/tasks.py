"""
Task database operations. Tasks double as calendar events and daily-note bullets.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, case, or_
from sqlalchemy.orm import Session

from database import load_owned
from errors import InvalidRequestError
from models import CALENDAR_TYPES, DailyNote, Task
from utils.datetime_utils import day_bounds, db_now, iso, parse_datetime, to_db

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
UPCOMING_DAYS = 7

# Rank so that high sorts before medium before low
PRIORITY_RANK = case(
    (Task.priority == "high", 3),
    (Task.priority == "medium", 2),
    (Task.priority == "low", 1),
    else_=0,
)


def parse_optional_datetime(value: Optional[str], field: str):
    """Parse an ISO timestamp from a request body into storage form"""
    if value is None or value == "":
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise InvalidRequestError(f"Invalid date for {field}")
    return to_db(parsed)


def get_task(db: Session, user_id: str, task_id: str) -> Task:
    return load_owned(db, Task, task_id, user_id, label="Task")


def create_task(db: Session, user_id: str, data: Dict[str, Any]) -> Task:
    if not data.get("title"):
        raise InvalidRequestError("Title is required")

    daily_note_id = data.get("daily_note_id")
    if daily_note_id:
        load_owned(db, DailyNote, daily_note_id, user_id, label="Daily note")

    task = Task(
        user_id=user_id,
        title=data["title"],
        description=data.get("description"),
        type=data.get("type") or "task",
        priority=data.get("priority") or "medium",
        completed=bool(data.get("completed", False)),
        due_date=parse_optional_datetime(data.get("due_date"), "dueDate"),
        due_time=data.get("due_time"),
        reminder=parse_optional_datetime(data.get("reminder"), "reminder"),
        extra_data=data.get("metadata"),
        daily_note_id=daily_note_id,
    )
    if task.completed:
        task.completed_at = db_now()
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, user_id: str, task_id: str, fields: Dict[str, Any]) -> Task:
    """Apply the fields the client sent; `completed` also sets or clears completed_at"""
    task = get_task(db, user_id, task_id)

    for field in ("title", "description", "type", "priority", "due_time"):
        if field in fields:
            if field == "title" and not fields[field]:
                raise InvalidRequestError("Title cannot be empty")
            if field in ("type", "priority") and fields[field] is None:
                continue
            setattr(task, field, fields[field])
    if "completed" in fields and fields["completed"] is not None:
        set_completed(task, fields["completed"])
    if "due_date" in fields:
        task.due_date = parse_optional_datetime(fields["due_date"], "dueDate")
    if "reminder" in fields:
        task.reminder = parse_optional_datetime(fields["reminder"], "reminder")
    if "metadata" in fields:
        task.extra_data = fields["metadata"]

    task.updated_at = db_now()
    db.commit()
    db.refresh(task)
    return task


def set_completed(task: Task, completed: bool):
    task.completed = completed
    task.completed_at = db_now() if completed else None


def toggle_task(db: Session, user_id: str, task_id: str, completed: Optional[bool] = None) -> Task:
    """Set completion explicitly, or flip it when `completed` is None"""
    task = get_task(db, user_id, task_id)
    set_completed(task, (not task.completed) if completed is None else completed)
    task.updated_at = db_now()
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, user_id: str, task_id: str):
    task = get_task(db, user_id, task_id)
    db.delete(task)
    db.commit()


def get_user_tasks(db: Session, user_id: str, completed: Optional[bool] = None,
                   task_type: Optional[str] = None, priority: Optional[str] = None,
                   skip: int = 0, take: int = DEFAULT_PAGE_SIZE) -> List[Task]:
    query = db.query(Task).filter(Task.user_id == user_id)
    if completed is not None:
        query = query.filter(Task.completed == completed)
    if task_type:
        query = query.filter(Task.type == task_type)
    if priority:
        query = query.filter(Task.priority == priority)

    return query.order_by(
        Task.completed.asc(),
        Task.due_date.is_(None),
        Task.due_date.asc(),
        Task.created_at.desc(),
    ).offset(skip).limit(take).all()


def get_today_tasks(db: Session, user_id: str) -> List[Task]:
    """Open tasks due today, plus undated ones created today"""
    start, end = day_bounds(db_now().date())
    return db.query(Task).filter(
        Task.user_id == user_id,
        Task.completed == False,  # noqa: E712
        or_(
            and_(Task.due_date >= start, Task.due_date < end),
            and_(Task.due_date.is_(None), Task.created_at >= start),
        ),
    ).order_by(PRIORITY_RANK.desc(), Task.due_date.asc()).all()


def get_overdue_tasks(db: Session, user_id: str) -> List[Task]:
    return db.query(Task).filter(
        Task.user_id == user_id,
        Task.completed == False,  # noqa: E712
        Task.due_date < db_now(),
    ).order_by(Task.due_date.asc()).all()


def get_upcoming_tasks(db: Session, user_id: str) -> List[Task]:
    now = db_now()
    return db.query(Task).filter(
        Task.user_id == user_id,
        Task.completed == False,  # noqa: E712
        Task.due_date >= now,
        Task.due_date <= now + timedelta(days=UPCOMING_DAYS),
    ).order_by(Task.due_date.asc()).all()


def get_task_stats(db: Session, user_id: str) -> Dict[str, Any]:
    base = db.query(Task).filter(Task.user_id == user_id)
    total = base.count()
    completed = base.filter(Task.completed == True).count()  # noqa: E712
    pending = base.filter(Task.completed == False).count()  # noqa: E712
    overdue = base.filter(Task.completed == False, Task.due_date < db_now()).count()  # noqa: E712
    return {
        "totalTasks": total,
        "completedTasks": completed,
        "pendingTasks": pending,
        "overdueTasks": overdue,
        "completionRate": (completed / total) * 100 if total > 0 else 0,
    }


# ===== Calendar events =====

def event_end(event: Task):
    """Stored end of a calendar event in storage form, or None"""
    parsed = parse_datetime(event.due_time)
    return to_db(parsed) if parsed else None


def get_calendar_event(db: Session, user_id: str, event_id: str) -> Task:
    return load_owned(db, Task, event_id, user_id, Task.type.in_(CALENDAR_TYPES), label="Event")


def list_calendar_events(db: Session, user_id: str) -> List[Task]:
    return db.query(Task).filter(
        Task.user_id == user_id,
        Task.type.in_(CALENDAR_TYPES),
    ).order_by(Task.due_date.asc()).all()


def create_calendar_event(db: Session, user_id: str, data: Dict[str, Any]) -> Task:
    if not all(data.get(field) for field in ("title", "start", "end", "type")):
        raise InvalidRequestError("Missing required fields")

    start = parse_optional_datetime(data["start"], "start")
    end = parse_optional_datetime(data["end"], "end")
    if end < start:
        raise InvalidRequestError("Event cannot end before it starts")

    source_note_id = data.get("source_note_id")
    if source_note_id:
        load_owned(db, DailyNote, source_note_id, user_id, label="Daily note")

    event = Task(
        user_id=user_id,
        title=data["title"],
        description=data.get("description") or data.get("location") or "",
        type=data["type"],
        due_date=start,
        due_time=iso(end),
        extra_data={"location": data.get("location"), "sourceNoteId": source_note_id},
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def update_calendar_event(db: Session, user_id: str, event_id: str, fields: Dict[str, Any]) -> Task:
    event = get_calendar_event(db, user_id, event_id)

    start = parse_optional_datetime(fields["start"], "start") if fields.get("start") else event.due_date
    end = parse_optional_datetime(fields["end"], "end") if fields.get("end") else event_end(event)
    if start and end and end < start:
        raise InvalidRequestError("Event cannot end before it starts")

    if fields.get("title"):
        event.title = fields["title"]
    if fields.get("type"):
        event.type = fields["type"]
    event.due_date = start
    event.due_time = iso(end) if end else event.due_time

    if "description" in fields or "location" in fields:
        location = fields.get("location", (event.extra_data or {}).get("location"))
        event.description = fields.get("description") or location or ""
        event.extra_data = {**(event.extra_data or {}), "location": location}

    event.updated_at = db_now()
    db.commit()
    db.refresh(event)
    return event


def delete_calendar_event(db: Session, user_id: str, event_id: str):
    event = get_calendar_event(db, user_id, event_id)
    db.delete(event)
    db.commit()

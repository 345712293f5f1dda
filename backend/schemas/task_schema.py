"""
Request bodies for tasks, daily-note bullets and calendar events, all stored as Task rows.
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from schemas.base_schema import RequestModel
from models import Task
from utils.datetime_utils import iso

TaskType = Literal["task", "meeting", "event", "travel", "birthday", "reminder"]
CalendarType = Literal["meeting", "event", "travel", "birthday", "reminder"]
Priority = Literal["low", "medium", "high"]


class TaskCreate(RequestModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[TaskType] = None
    priority: Optional[Priority] = None
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    reminder: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    daily_note_id: Optional[str] = None


class TaskUpdate(RequestModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[TaskType] = None
    completed: Optional[bool] = None
    priority: Optional[Priority] = None
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    reminder: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class TaskToggle(RequestModel):
    task_id: Optional[str] = None
    completed: Any = None


class NoteItemCreate(RequestModel):
    content: Optional[str] = None
    type: Optional[TaskType] = None
    daily_note_id: Optional[str] = None
    parent_id: Optional[str] = None
    indent: Optional[int] = None
    completed: Optional[bool] = None
    linked_pages: Optional[List[str]] = None


class NoteItemUpdate(RequestModel):
    content: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    completed: Optional[bool] = None
    priority: Optional[Priority] = None
    due_date: Optional[str] = None


class CalendarEventCreate(RequestModel):
    title: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    type: Optional[CalendarType] = None
    description: Optional[str] = None
    location: Optional[str] = None
    source_note_id: Optional[str] = Field(default=None)


class CalendarEventUpdate(RequestModel):
    title: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    type: Optional[CalendarType] = None
    description: Optional[str] = None
    location: Optional[str] = None


def serialize_task(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "userId": task.user_id,
        "dailyNoteId": task.daily_note_id,
        "title": task.title,
        "description": task.description,
        "type": task.type,
        "completed": bool(task.completed),
        "completedAt": iso(task.completed_at),
        "priority": task.priority,
        "dueDate": iso(task.due_date),
        "dueTime": task.due_time,
        "reminder": iso(task.reminder),
        "metadata": task.extra_data,
        "createdAt": iso(task.created_at),
        "updatedAt": iso(task.updated_at),
    }


def serialize_note_item(task: Task) -> Dict[str, Any]:
    """A task shown as a bullet inside its daily note"""
    meta = task.extra_data or {}
    return {
        "id": task.id,
        "content": task.title,
        "type": task.type,
        "createdAt": iso(task.created_at),
        "pageId": task.daily_note_id,
        "linkedPages": meta.get("linkedPages") or [],
        "children": [],
        "parentId": meta.get("parentId"),
        "indent": meta.get("indent") or 0,
        "completed": bool(task.completed),
    }

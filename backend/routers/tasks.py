"""
Task routes. Literal paths are declared before /{task_id} so they win the match.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth import get_current_user
from crud import tasks as tasks_crud
from database import get_db
from errors import InvalidRequestError, api_errors
from models import User
from schemas.task_schema import TaskCreate, TaskToggle, TaskUpdate, serialize_task

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

TASK_FILTERS = ("today", "overdue", "upcoming", "all")


@router.get("")
@api_errors("Failed to fetch tasks")
async def list_tasks(
    filter: str = Query("all"),
    completed: Optional[bool] = None,
    type: Optional[str] = None,
    priority: Optional[str] = None,
    skip: int = Query(0, ge=0),
    take: int = Query(tasks_crud.DEFAULT_PAGE_SIZE, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if filter not in TASK_FILTERS:
        raise InvalidRequestError(f"filter must be one of {', '.join(TASK_FILTERS)}")

    if filter == "today":
        tasks = tasks_crud.get_today_tasks(db, user.id)
    elif filter == "overdue":
        tasks = tasks_crud.get_overdue_tasks(db, user.id)
    elif filter == "upcoming":
        tasks = tasks_crud.get_upcoming_tasks(db, user.id)
    else:
        tasks = tasks_crud.get_user_tasks(db, user.id, completed=completed, task_type=type,
                                          priority=priority, skip=skip, take=take)
    return {"success": True, "tasks": [serialize_task(t) for t in tasks]}


@router.post("")
@api_errors("Failed to create task")
async def create_task(body: TaskCreate, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    task = tasks_crud.create_task(db, user.id, body.model_dump())
    return {"success": True, "task": serialize_task(task)}


@router.get("/stats")
@api_errors("Failed to fetch task stats")
async def task_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "stats": tasks_crud.get_task_stats(db, user.id)}


@router.post("/toggle")
@api_errors("Failed to toggle task")
async def toggle_task(body: TaskToggle, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    if not body.task_id or not isinstance(body.completed, bool):
        raise InvalidRequestError("Invalid request: taskId and completed (boolean) are required")
    task = tasks_crud.toggle_task(db, user.id, body.task_id, body.completed)
    return {"success": True, "task": serialize_task(task)}


@router.get("/{task_id}")
@api_errors("Failed to fetch task")
async def get_task(task_id: str, user: User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    task = tasks_crud.get_task(db, user.id, task_id)
    return {"success": True, "task": serialize_task(task)}


@router.patch("/{task_id}")
@api_errors("Failed to update task")
async def update_task(task_id: str, body: TaskUpdate, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    task = tasks_crud.update_task(db, user.id, task_id, body.present_fields())
    return {"success": True, "task": serialize_task(task)}


@router.delete("/{task_id}")
@api_errors("Failed to delete task")
async def delete_task(task_id: str, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    tasks_crud.delete_task(db, user.id, task_id)
    return {"success": True, "message": "Task deleted"}

"""
Task HTTP routes.
Only the fields that drive reminders and streaks are managed here.
"""
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from studybuddy.auth import verify_api_key
from studybuddy.config import Config
from studybuddy.dependencies import get_db, get_config
from studybuddy.models import Task
from studybuddy.repositories.task_repository import TaskRepository
from studybuddy.repositories.user_repository import UserRepository
from studybuddy.services.reminder_service import ReminderService
from studybuddy.services.streak_service import StreakService
from studybuddy.routes.streak import streak_response
from studybuddy.schemas import (
    TaskCreate, TaskUpdate, TaskResponse, TaskCompleteResponse, ReminderTimeResponse
)

router = APIRouter(prefix="/api/tasks", tags=["tasks"], dependencies=[Depends(verify_api_key)])


@router.post("", response_model=TaskResponse, status_code=201)
def create_task(payload: TaskCreate, db: Session = Depends(get_db)):
    """Create a new task"""
    UserRepository.get_or_raise(db, payload.user_id)
    data = payload.model_dump()
    if data["custom_reminder_date"] is not None:
        data["custom_reminder_date"] = ReminderService.to_local_naive(data["custom_reminder_date"])
    return TaskRepository.create(db, Task(**data))


@router.get("", response_model=List[TaskResponse])
def list_tasks(user_id: str, include_completed: bool = True, db: Session = Depends(get_db)):
    """Get a user's tasks"""
    return TaskRepository.get_for_user(db, user_id, include_completed)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, db: Session = Depends(get_db)):
    """Get a specific task"""
    return TaskRepository.get_or_raise(db, task_id)


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(task_id: int, payload: TaskUpdate, db: Session = Depends(get_db)):
    """Update a task"""
    task = TaskRepository.get_or_raise(db, task_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("custom_reminder_date") is not None:
        changes["custom_reminder_date"] = ReminderService.to_local_naive(changes["custom_reminder_date"])

    for field, value in changes.items():
        setattr(task, field, value)

    if task.reminder == "custom" and task.custom_reminder_date is None:
        raise HTTPException(
            status_code=400,
            detail="custom_reminder_date is required when reminder is 'custom'"
        )
    return TaskRepository.update(db, task)


@router.delete("/{task_id}")
def delete_task(task_id: int, db: Session = Depends(get_db)):
    """Delete a task together with its sent-reminder records"""
    task = TaskRepository.get_or_raise(db, task_id)
    TaskRepository.delete(db, task)
    return {"success": True, "message": "Task deleted successfully"}


@router.post("/{task_id}/complete", response_model=TaskCompleteResponse)
def complete_task(
    task_id: int,
    db: Session = Depends(get_db),
    config: Config = Depends(get_config)
):
    """Mark a task completed and count it toward the owner's streak"""
    task = TaskRepository.get_or_raise(db, task_id)
    if task.completed:
        raise HTTPException(status_code=400, detail="Task already completed")

    def mark_completed():
        task.completed = True
        task.completed_at = datetime.now()

    # Task and streak are committed together, or neither is
    result = StreakService(db, config).update_streak(task.user_id, with_action=mark_completed)
    db.refresh(task)
    return {"task": task, "streak": streak_response(result)}


@router.get("/{task_id}/reminder-time", response_model=ReminderTimeResponse)
def get_reminder_time(
    task_id: int,
    db: Session = Depends(get_db),
    config: Config = Depends(get_config)
):
    """Preview when the task's reminder fires (process local time)"""
    task = TaskRepository.get_or_raise(db, task_id)
    reminder_time = None
    if not task.completed:
        owner = UserRepository.get_by_id(db, task.user_id)
        tz_name = ReminderService.timezone_for(config, owner.timezone if owner else None)
        reminder_time = ReminderService.calculate_reminder_time(task, tz_name)
    return {"task_id": task.id, "reminder": task.reminder, "reminder_time": reminder_time}

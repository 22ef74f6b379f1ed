"""
Task repository - Data access layer for Task and ReminderDelivery models.
Handles all database queries related to tasks and sent reminders.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_

from studybuddy.models import Task, ReminderDelivery
from studybuddy.exceptions import TaskNotFoundException


class TaskRepository:
    """Repository for Task data access"""

    @staticmethod
    def get_by_id(db: Session, task_id: int) -> Optional[Task]:
        """Get task by ID"""
        return db.query(Task).filter(Task.id == task_id).first()

    @staticmethod
    def get_or_raise(db: Session, task_id: int) -> Task:
        """Get task by ID, raising TaskNotFoundException when missing"""
        task = db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise TaskNotFoundException(task_id)
        return task

    @staticmethod
    def get_for_user(db: Session, user_id: str, include_completed: bool = True) -> List[Task]:
        """Get a user's tasks ordered by due date"""
        query = db.query(Task).filter(Task.user_id == user_id)
        if not include_completed:
            query = query.filter(Task.completed == False)
        return query.order_by(Task.due_date, Task.id).all()

    @staticmethod
    def get_incomplete_with_reminders(db: Session) -> List[Task]:
        """Get all incomplete tasks that have a reminder set (all users)"""
        return db.query(Task).filter(
            and_(
                Task.completed == False,
                Task.reminder.isnot(None)
            )
        ).order_by(Task.id).all()

    @staticmethod
    def create(db: Session, task: Task) -> Task:
        """Create new task"""
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def update(db: Session, task: Task) -> Task:
        """Update existing task"""
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def delete(db: Session, task: Task) -> None:
        """Delete a task and its sent-reminder records"""
        db.query(ReminderDelivery).filter(
            ReminderDelivery.task_id == task.id
        ).delete(synchronize_session=False)
        db.delete(task)
        db.commit()


class ReminderDeliveryRepository:
    """Repository for ReminderDelivery data access"""

    @staticmethod
    def exists(db: Session, task_id: int, fire_at: datetime) -> bool:
        """Check whether the reminder for this fire time was already sent"""
        return db.query(ReminderDelivery).filter(
            and_(
                ReminderDelivery.task_id == task_id,
                ReminderDelivery.fire_at == fire_at
            )
        ).first() is not None

    @staticmethod
    def get_for_task(db: Session, task_id: int) -> List[ReminderDelivery]:
        """Get all deliveries recorded for a task"""
        return db.query(ReminderDelivery).filter(
            ReminderDelivery.task_id == task_id
        ).order_by(ReminderDelivery.sent_at).all()

    @staticmethod
    def create(db: Session, delivery: ReminderDelivery) -> ReminderDelivery:
        """Record a sent reminder"""
        db.add(delivery)
        db.commit()
        db.refresh(delivery)
        return delivery

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
)
from datetime import datetime
from studybuddy.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=True, index=True)
    name = Column(String, nullable=True)
    expo_push_token = Column(String, nullable=True)
    timezone = Column(String, nullable=True)  # IANA name, used when day anchor is "user"

    # Streak state
    streak_current = Column(Integer, default=0, nullable=False)
    streak_longest = Column(Integer, default=0, nullable=False)
    streak_last_completion_date = Column(String, nullable=True)  # YYYY-MM-DD
    streak_total_tasks_completed = Column(Integer, default=0, nullable=False)
    streak_freezes = Column(Integer, default=0, nullable=False)  # Reserved, not consumed

    # Gamification
    points = Column(Integer, default=0, nullable=False)
    level = Column(Integer, default=1, nullable=False)
    habits_completed = Column(Integer, default=0, nullable=False)
    features_used = Column(Integer, default=0, nullable=False)
    goals_completed = Column(Integer, default=0, nullable=False)

    # Optimistic concurrency: every UPDATE is conditional on this value
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    __mapper_args__ = {"version_id_col": version}

    def streak_state(self) -> dict:
        """Stored streak state as a plain dict"""
        return {
            "current": self.streak_current or 0,
            "longest": self.streak_longest or 0,
            "lastCompletionDate": self.streak_last_completion_date,
            "totalTasksCompleted": self.streak_total_tasks_completed or 0,
            "streakFreezes": self.streak_freezes or 0,
        }


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    description = Column(String, nullable=False)
    type = Column(String, default="task")  # task, assignment, exam, ...
    class_name = Column(String, nullable=True)

    due_date = Column(String, nullable=True)  # YYYY-MM-DD
    due_time = Column(String, nullable=True)  # HH:MM, 24-hour
    reminder = Column(String, nullable=True)  # 1h, 2h, 1d, 2d, custom
    custom_reminder_date = Column(DateTime, nullable=True)  # Local time, required for "custom"

    completed = Column(Boolean, default=False, nullable=False, index=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.now)


class ReminderDelivery(Base):
    """Marks a task reminder as sent for one computed fire time"""
    __tablename__ = "reminder_deliveries"
    __table_args__ = (
        UniqueConstraint("task_id", "fire_at", name="uq_reminder_delivery_task_fire"),
    )

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    fire_at = Column(DateTime, nullable=False)
    sent_at = Column(DateTime, default=datetime.now)

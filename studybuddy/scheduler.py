"""
Background scheduler for task reminders
Handles:
- Polling incomplete tasks on a fixed cadence
- Sending each task reminder once when its fire time enters the window
- Recording sent reminders so overlapping windows never double-fire
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from studybuddy.config import Config
from studybuddy.database import Database
from studybuddy.models import ReminderDelivery
from studybuddy.repositories.task_repository import TaskRepository, ReminderDeliveryRepository
from studybuddy.repositories.user_repository import UserRepository
from studybuddy.services.reminder_service import ReminderService
from studybuddy.services.notification_service import NotificationService
from studybuddy.exceptions import StudyBuddyException, NotificationDeliveryException

logger = logging.getLogger("studybuddy.scheduler")

STATE_IDLE = "idle"
STATE_SCANNING = "scanning"
STATE_STOPPED = "stopped"

JOB_ID = "task_reminders"


class ReminderPoller:
    """Recurring job that dispatches due task reminders"""

    def __init__(
        self,
        database: Database,
        config: Optional[Config] = None,
        dispatcher_factory: Optional[Callable[[Session], object]] = None
    ):
        self.database = database
        self.config = config or Config()
        # Builds a dispatcher exposing send_task_reminder(task) for a session
        self.dispatcher_factory = dispatcher_factory or (
            lambda db: NotificationService(db, self.config)
        )
        self.scheduler = BackgroundScheduler()
        self.state = STATE_STOPPED
        self.last_tick_at: Optional[datetime] = None

    @property
    def interval(self) -> timedelta:
        return timedelta(minutes=self.config.reminder_poll_minutes)

    @property
    def catchup(self) -> timedelta:
        return timedelta(minutes=self.config.reminder_catchup_minutes)

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def in_window(self, fire_at: datetime, now: datetime) -> bool:
        """Closed window [now - catchup, now + interval]"""
        return now - self.catchup <= fire_at <= now + self.interval

    def tick(self, now: Optional[datetime] = None) -> int:
        """
        Scan incomplete tasks once and send the reminders that are due.

        Args:
            now: Reference time, defaults to the current local time

        Returns:
            Number of reminders sent
        """
        now = now or datetime.now()
        self.state = STATE_SCANNING
        db = self.database.session()
        sent = 0
        try:
            try:
                tasks = TaskRepository.get_incomplete_with_reminders(db)
            except SQLAlchemyError as e:
                logger.error(f"Scheduler Error (Reminders): could not load tasks: {e}")
                return 0

            dispatcher = self.dispatcher_factory(db)
            zones = {}

            for task in tasks:
                try:
                    if task.user_id not in zones:
                        owner = UserRepository.get_by_id(db, task.user_id)
                        zones[task.user_id] = ReminderService.timezone_for(
                            self.config, owner.timezone if owner else None
                        )
                    fire_at = ReminderService.calculate_reminder_time(task, zones[task.user_id])
                except StudyBuddyException as e:
                    logger.warning(f"Skipping task {task.id}: {e}")
                    continue

                if fire_at is None or not self.in_window(fire_at, now):
                    continue

                if ReminderDeliveryRepository.exists(db, task.id, fire_at):
                    logger.debug(f"Reminder for task {task.id} at {fire_at} already sent")
                    continue

                logger.info(f"Sending reminder for task {task.id} to user {task.user_id}")
                try:
                    ticket = dispatcher.send_task_reminder(task)
                except NotificationDeliveryException as e:
                    logger.error(f"Reminder for task {task.id} failed: {e}")
                    continue
                except Exception as e:
                    logger.error(f"Unexpected error sending reminder for task {task.id}: {e}")
                    continue

                if ticket is None:
                    # No push target yet; a later tick may still reach the user
                    logger.info(f"Reminder for task {task.id} not delivered: user {task.user_id} has no push token")
                    continue

                try:
                    ReminderDeliveryRepository.create(
                        db, ReminderDelivery(task_id=task.id, fire_at=fire_at, sent_at=now)
                    )
                except IntegrityError:
                    db.rollback()
                    logger.warning(f"Reminder for task {task.id} at {fire_at} was recorded concurrently")
                    continue
                sent += 1

            if sent > 0:
                logger.info(f"Sent {sent} reminder(s)")
            return sent
        finally:
            db.close()
            self.last_tick_at = now
            self.state = STATE_IDLE if self.running else STATE_STOPPED

    def _run(self) -> None:
        try:
            self.tick()
        except Exception as e:
            logger.error(f"Scheduler Error (Reminders): {e}")

    def start(self) -> None:
        """Arm the recurring reminder job"""
        if self.scheduler.running:
            return

        minutes = self.config.reminder_poll_minutes
        self.scheduler.add_job(
            self._run,
            IntervalTrigger(minutes=minutes),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,  # a slow tick never overlaps the next one
            coalesce=True,
        )
        self.scheduler.start()
        self.state = STATE_IDLE
        logger.info(f">>> Reminder scheduler STARTED (every {minutes} minutes) <<<")

    def stop(self) -> None:
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Reminder scheduler stopped")
        self.state = STATE_STOPPED

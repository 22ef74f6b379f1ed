"""
Daily streak service.
Advances a user's streak on each qualifying action (e.g. a completed task)
and reports milestones.
"""
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from studybuddy.config import Config
from studybuddy.models import User
from studybuddy.repositories.user_repository import UserRepository
from studybuddy.services.date_service import DateService
from studybuddy.services.gamification_service import GamificationService
from studybuddy.constants import (
    STREAK_MILESTONES,
    STREAK_POINTS_CONTINUE,
    STREAK_POINTS_RESTART,
    STREAK_POINTS_MILESTONE,
    ACTIVITY_STREAK,
)

logger = logging.getLogger("studybuddy.streak")


class StreakService:
    """Service for daily streak tracking"""

    def __init__(self, db: Session, config: Optional[Config] = None):
        self.db = db
        self.config = config or Config()
        self.user_repo = UserRepository()
        self.date_service = DateService()
        self.gamification = GamificationService(db, self.config)

    def _timezone_for(self, user: User) -> Optional[str]:
        return self.date_service.resolve_timezone(
            self.config.day_anchor, self.config.timezone, user.timezone
        )

    @staticmethod
    def check_milestone(current: int, increased: bool) -> Optional[int]:
        """Return the milestone reached by this update, if any"""
        if increased and current in STREAK_MILESTONES:
            return current
        return None

    def _apply_action(self, user: User) -> dict:
        """
        Apply one qualifying action to the loaded user (no commit).

        Same day (or a stored date ahead of today): only the completion counter moves.
        Day after the last action: streak continues.
        Anything else (gap or first action ever): streak restarts at 1.
        """
        today = self.date_service.today(self._timezone_for(user))
        yesterday = self.date_service.yesterday(today)

        current = user.streak_current or 0
        longest = user.streak_longest or 0
        total = (user.streak_total_tasks_completed or 0) + 1
        last_date = user.streak_last_completion_date

        # last_date never moves backwards
        if last_date is not None and last_date >= today:
            increased = False
        elif last_date == yesterday:
            increased = True
            current += 1
            last_date = today
        else:
            increased = True
            current = 1
            last_date = today

        if current > longest:
            longest = current

        milestone = self.check_milestone(current, increased)

        user.streak_current = current
        user.streak_longest = longest
        user.streak_total_tasks_completed = total
        user.streak_last_completion_date = last_date

        # Streak points share the same write as the streak itself
        points_to_award = 0
        if increased:
            points_to_award = STREAK_POINTS_CONTINUE if current > 1 else STREAK_POINTS_RESTART
            if milestone:
                points_to_award += STREAK_POINTS_MILESTONE

        if points_to_award:
            award = self.gamification.apply_points(user, points_to_award, ACTIVITY_STREAK)
        else:
            award = {"points": user.points or 0, "level": user.level or 1, "leveledUp": False}

        return {
            "current": current,
            "longest": longest,
            "totalTasksCompleted": total,
            "increased": increased,
            "milestone": milestone,
            "pointsAwarded": points_to_award,
            "points": award["points"],
            "level": award["level"],
            "leveledUp": award["leveledUp"],
        }

    def update_streak(self, user_id: str, with_action: Optional[Callable[[], None]] = None) -> dict:
        """
        Record a qualifying action and update the user's streak.

        Args:
            user_id: User who performed the action
            with_action: Change to persist in the same commit as the streak
                (e.g. marking the task completed); re-applied on every retry

        Returns:
            Dict with current, longest, totalTasksCompleted, increased,
            milestone (int or None) and the streak points outcome

        Raises:
            UserNotFoundException: If the user does not exist
            ConcurrentUpdateException: If the record kept changing underneath
        """
        def mutate(user: User) -> dict:
            if with_action is not None:
                with_action()
            return self._apply_action(user)

        result = self.user_repo.update_with_retry(
            self.db,
            user_id,
            mutate,
            attempts=self.config.max_update_retries,
        )

        if result["milestone"]:
            logger.info(f"User {user_id} reached a {result['milestone']}-day streak")
        elif result["increased"] and result["current"] == 1:
            logger.info(f"User {user_id} started a new streak")

        return result

    def reset_idle_streaks(self, dry_run: bool = False) -> list:
        """
        Zero the streak of users who never completed anything.

        Args:
            dry_run: Only report, don't write

        Returns:
            IDs of users whose streak was (or would be) reset
        """
        reset_ids = []
        for user in self.user_repo.get_without_completions(self.db):
            if (user.streak_current or 0) == 0 and (user.streak_longest or 0) == 0 \
                    and user.streak_last_completion_date is None:
                continue
            reset_ids.append(user.id)
            if not dry_run:
                user.streak_current = 0
                user.streak_longest = 0
                user.streak_last_completion_date = None

        if reset_ids and not dry_run:
            self.db.commit()
            logger.info(f"Reset streak for {len(reset_ids)} user(s)")
        return reset_ids

    def get_streak_data(self, user_id: str) -> dict:
        """
        Read the stored streak state.

        The extra "active" flag is derived, not stored: the streak is alive
        when the last action was today or yesterday.

        Raises:
            UserNotFoundException: If the user does not exist
        """
        user = self.user_repo.get_or_raise(self.db, user_id)
        state = user.streak_state()

        today = self.date_service.today(self._timezone_for(user))
        last_date = state["lastCompletionDate"]
        state["active"] = last_date is not None and last_date >= self.date_service.yesterday(today)
        return state

"""
Points and level service.
Awards points, maintains activity counters and derives levels from fixed thresholds.
"""
import logging
from typing import Mapping, Optional

from sqlalchemy.orm import Session

from studybuddy.config import Config
from studybuddy.models import User
from studybuddy.repositories.user_repository import UserRepository
from studybuddy.exceptions import ConfigurationException
from studybuddy.constants import (
    LEVEL_THRESHOLDS,
    MIN_LEVEL,
    MAX_LEVEL,
    ACTIVITY_HABIT,
    ACTIVITY_FEATURE,
    ACTIVITY_GOAL,
)

logger = logging.getLogger("studybuddy.gamification")

# activity type -> counter column
ACTIVITY_COUNTERS = {
    ACTIVITY_HABIT: "habits_completed",
    ACTIVITY_FEATURE: "features_used",
    ACTIVITY_GOAL: "goals_completed",
}


def validate_level_thresholds(thresholds: Mapping[int, int] = LEVEL_THRESHOLDS) -> None:
    """
    Enforce the threshold table invariant.

    Keys must be exactly MIN_LEVEL..MAX_LEVEL and values strictly increasing,
    otherwise levels above the first out-of-order entry are unreachable.

    Raises:
        ConfigurationException: If the table breaks the invariant
    """
    expected = list(range(MIN_LEVEL, MAX_LEVEL + 1))
    if sorted(thresholds.keys()) != expected:
        raise ConfigurationException(
            f"level thresholds must define levels {MIN_LEVEL}..{MAX_LEVEL}"
        )

    previous = None
    for level in expected:
        value = thresholds[level]
        if previous is not None and value <= previous:
            raise ConfigurationException(
                f"level thresholds must be strictly increasing "
                f"(level {level}: {value} <= {previous})"
            )
        previous = value


validate_level_thresholds()


class GamificationService:
    """Service for points and levels"""

    def __init__(self, db: Session, config: Optional[Config] = None):
        self.db = db
        self.config = config or Config()
        self.user_repo = UserRepository()

    @staticmethod
    def calculate_level(points: int, thresholds: Mapping[int, int] = LEVEL_THRESHOLDS) -> int:
        """
        Calculate level based on points.

        Scans levels in order and stops at the first threshold not reached.

        Args:
            points: Cumulative points
            thresholds: Points needed to reach level N+1, keyed by N

        Returns:
            Level in [1, 10]
        """
        current_level = MIN_LEVEL
        for level in range(MIN_LEVEL, MAX_LEVEL + 1):
            if points >= thresholds[level]:
                current_level = level + 1
            else:
                break
        return min(current_level, MAX_LEVEL)

    def apply_points(self, user: User, points_to_add: int, activity_type: Optional[str]) -> dict:
        """
        Add points to a loaded user without committing.

        Args:
            user: User record (modified in place)
            points_to_add: Points to add, not validated
            activity_type: 'task', 'streak', 'goal', 'habit', 'feature'

        Returns:
            Dict with points, level, leveledUp, pointsAdded
        """
        user.points = (user.points or 0) + points_to_add

        counter = ACTIVITY_COUNTERS.get(activity_type)
        if counter:
            setattr(user, counter, (getattr(user, counter) or 0) + 1)

        previous_level = user.level or MIN_LEVEL
        new_level = self.calculate_level(user.points)
        user.level = new_level

        return {
            "points": user.points,
            "level": new_level,
            "leveledUp": new_level > previous_level,
            "pointsAdded": points_to_add,
        }

    def award_points(self, user_id: str, points_to_add: int, activity_type: Optional[str]) -> dict:
        """
        Award points to a user and check for level up.

        Raises:
            UserNotFoundException: If the user does not exist
        """
        result = self.user_repo.update_with_retry(
            self.db,
            user_id,
            lambda user: self.apply_points(user, points_to_add, activity_type),
            attempts=self.config.max_update_retries,
        )
        if result["leveledUp"]:
            logger.info(f"User {user_id} reached level {result['level']}")
        return result

    def get_stats(self, user_id: str) -> dict:
        """Get points, level and activity counters"""
        user = self.user_repo.get_or_raise(self.db, user_id)
        return {
            "points": user.points or 0,
            "level": user.level or MIN_LEVEL,
            "gamification": {
                "habitsCompleted": user.habits_completed or 0,
                "featuresUsed": user.features_used or 0,
                "goalsCompleted": user.goals_completed or 0,
            },
        }

"""
User repository - Data access layer for User model.
Handles all database queries related to users, streaks and gamification.
"""
import logging
from typing import Callable, List, Optional, TypeVar
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from studybuddy.models import User
from studybuddy.exceptions import UserNotFoundException, ConcurrentUpdateException

logger = logging.getLogger("studybuddy.repositories.user")

T = TypeVar("T")


class UserRepository:
    """Repository for User data access"""

    @staticmethod
    def get_by_id(db: Session, user_id: str) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_or_raise(db: Session, user_id: str) -> User:
        """
        Get user by ID or fail.

        Raises:
            UserNotFoundException: If no user record exists
        """
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise UserNotFoundException(user_id)
        return user

    @staticmethod
    def get_all(db: Session) -> List[User]:
        """Get all users"""
        return db.query(User).order_by(User.id).all()

    @staticmethod
    def get_without_completions(db: Session) -> List[User]:
        """Get users that never recorded a qualifying action"""
        return db.query(User).filter(User.streak_total_tasks_completed == 0).all()

    @staticmethod
    def create(db: Session, user: User) -> User:
        """Create new user"""
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update(db: Session, user: User) -> User:
        """
        Persist pending changes to a user.

        The UPDATE is conditional on the row version, so a stale read raises
        sqlalchemy.orm.exc.StaleDataError here.
        """
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update_with_retry(
        db: Session,
        user_id: str,
        mutate: Callable[[User], T],
        attempts: int = 3
    ) -> T:
        """
        Atomic read-modify-write of one user record.

        Loads the user, applies mutate() and commits. The commit is a
        compare-and-swap on the version column; if another writer got there
        first the session is rolled back and mutate() runs again on a fresh read.

        Args:
            db: Database session
            user_id: User to update
            mutate: Callback that changes the user and returns the result
            attempts: Maximum number of read-modify-write rounds

        Returns:
            Whatever mutate() returned on the successful round

        Raises:
            UserNotFoundException: If the user does not exist
            ConcurrentUpdateException: If every round lost the race
        """
        attempts = max(1, attempts)
        for attempt in range(1, attempts + 1):
            user = UserRepository.get_or_raise(db, user_id)
            result = mutate(user)
            try:
                db.commit()
            except StaleDataError:
                db.rollback()
                logger.warning(f"Stale write for user {user_id} (attempt {attempt}/{attempts}), retrying")
                continue
            db.refresh(user)
            return result

        raise ConcurrentUpdateException(user_id, attempts)

"""
Shared fixtures for StudyBuddy tests.

Every test gets a fresh in-memory SQLite database.
"""
import pytest
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from unittest.mock import patch

from studybuddy.config import Config
from studybuddy.database import Database
from studybuddy.models import User, Task


@contextmanager
def freeze_time(moment: datetime):
    """Pin DateService's notion of "now" to moment"""
    with patch('studybuddy.services.date_service.datetime') as mock_dt:
        mock_dt.now.return_value = moment
        mock_dt.side_effect = lambda *args, **kwargs: datetime(*args, **kwargs)
        yield mock_dt


def create_task(db_session, user_id="user-1", **fields) -> Task:
    """Persist a task with reminder-friendly defaults"""
    values = dict(
        user_id=user_id,
        description="Read chapter 4",
        type="assignment",
        due_date="2025-06-10",
        due_time="14:00",
        reminder="2h",
    )
    values.update(fields)
    task = Task(**values)
    db_session.add(task)
    db_session.commit()
    db_session.refresh(task)
    return task


@pytest.fixture
def config(tmp_path):
    return Config(
        database_url="sqlite:///:memory:",
        api_key="test-key",
        scheduler_enabled=False,
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def database(config):
    db = Database(config.database_url).open()
    db.create_all()
    yield db
    db.close()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def make_user(db_session):
    def _make(user_id="user-1", **fields) -> User:
        user = User(id=user_id, **fields)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture
def today():
    return date(2026, 1, 30)


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


@pytest.fixture
def frozen_now():
    """10:00 on the `today` fixture date"""
    return datetime(2026, 1, 30, 10, 0, 0)

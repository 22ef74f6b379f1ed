"""
FastAPI dependencies shared by the routers.
"""
from typing import Iterator

from fastapi import Request
from sqlalchemy.orm import Session

from studybuddy.config import Config


def get_db(request: Request) -> Iterator[Session]:
    """Yield a session from the app's database handle"""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def get_config(request: Request) -> Config:
    return request.app.state.config

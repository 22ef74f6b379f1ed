"""
Streak HTTP routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from studybuddy.auth import verify_api_key
from studybuddy.config import Config
from studybuddy.dependencies import get_db, get_config
from studybuddy.services.streak_service import StreakService
from studybuddy.schemas import (
    StreakUpdateRequest, StreakUpdateResponse, StreakDataResponse
)

router = APIRouter(prefix="/api/streak", tags=["streak"], dependencies=[Depends(verify_api_key)])


def streak_response(result: dict) -> dict:
    """Shape a StreakService.update_streak result for the API"""
    return {
        "success": True,
        "streak": {
            "current": result["current"],
            "longest": result["longest"],
            "totalTasksCompleted": result["totalTasksCompleted"],
        },
        "increased": result["increased"],
        "milestone": result["milestone"],
        "pointsAwarded": result["pointsAwarded"],
        "points": result["points"],
        "level": result["level"],
        "leveledUp": result["leveledUp"],
    }


@router.post("/update", response_model=StreakUpdateResponse)
def update_streak(
    payload: StreakUpdateRequest,
    db: Session = Depends(get_db),
    config: Config = Depends(get_config)
):
    """Record a qualifying action (e.g. a completed task) for the user."""
    result = StreakService(db, config).update_streak(payload.user_id)
    return streak_response(result)


@router.get("/{user_id}", response_model=StreakDataResponse)
def get_streak(
    user_id: str,
    db: Session = Depends(get_db),
    config: Config = Depends(get_config)
):
    """Get the user's stored streak data."""
    return {"success": True, "streak": StreakService(db, config).get_streak_data(user_id)}

"""
Points and level HTTP routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from studybuddy.auth import verify_api_key
from studybuddy.config import Config
from studybuddy.dependencies import get_db, get_config
from studybuddy.services.gamification_service import GamificationService
from studybuddy.schemas import (
    AwardPointsRequest, AwardPointsResponse, GamificationStatsResponse
)

router = APIRouter(
    prefix="/api/gamification", tags=["gamification"], dependencies=[Depends(verify_api_key)]
)


@router.get("/stats/{user_id}", response_model=GamificationStatsResponse)
def get_stats(
    user_id: str,
    db: Session = Depends(get_db),
    config: Config = Depends(get_config)
):
    """Get user points, level and activity counters."""
    return GamificationService(db, config).get_stats(user_id)


@router.post("/award", response_model=AwardPointsResponse)
def award_points(
    payload: AwardPointsRequest,
    db: Session = Depends(get_db),
    config: Config = Depends(get_config)
):
    """Award points for feature usage or client-side events."""
    service = GamificationService(db, config)
    return service.award_points(payload.user_id, payload.points, payload.activity_type)

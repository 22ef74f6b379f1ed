"""
User HTTP routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from studybuddy.auth import verify_api_key
from studybuddy.dependencies import get_db
from studybuddy.models import User
from studybuddy.repositories.user_repository import UserRepository
from studybuddy.services.date_service import DateService
from studybuddy.schemas import UserCreate, UserResponse, PushTokenUpdate

router = APIRouter(prefix="/api/users", tags=["users"], dependencies=[Depends(verify_api_key)])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Create a user record with zeroed streak and points."""
    if UserRepository.get_by_id(db, payload.id):
        raise HTTPException(status_code=409, detail="User already exists")
    if payload.timezone:
        DateService.get_zone(payload.timezone)

    user = User(
        id=payload.id,
        email=payload.email.lower() if payload.email else None,
        name=payload.name,
        expo_push_token=payload.expo_push_token,
        timezone=payload.timezone,
    )
    return UserRepository.create(db, user)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Get a user."""
    return UserRepository.get_or_raise(db, user_id)


@router.put("/{user_id}/push-token", response_model=UserResponse)
def update_push_token(user_id: str, payload: PushTokenUpdate, db: Session = Depends(get_db)):
    """Register (or clear) the device push token for a user."""
    user = UserRepository.get_or_raise(db, user_id)
    user.expo_push_token = payload.expo_push_token
    return UserRepository.update(db, user)

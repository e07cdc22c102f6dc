from fastapi import APIRouter, Depends, HTTPException, status

import schemas
from database import get_storage
from routers.utils import get_current_user, get_current_user_id, server_error
from storage import Storage

router = APIRouter()


@router.get("/current-user", response_model=schemas.UserResponse)
async def get_current_user_profile(
    current_user: schemas.UserRecord = Depends(get_current_user)
):
    """Retrieve the current user's profile (the password is never included)"""
    return current_user


@router.get("/user-preferences", response_model=schemas.UserPreferencesResponse)
async def get_user_preferences(
    user_id: int = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage)
):
    """Retrieve the current user's preferences"""
    try:
        preferences = storage.get_user_preferences(user_id)
    except Exception as err:
        raise server_error("Error fetching user preferences", err) from err

    if preferences is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User preferences not found"
        )
    return preferences


@router.post("/user-preferences", response_model=schemas.UserPreferencesResponse)
async def save_user_preferences(
    preferences: schemas.UserPreferencesCreate,
    storage: Storage = Depends(get_storage)
):
    """Create the user's preferences, or merge the given fields into the existing ones"""
    try:
        return storage.create_or_update_user_preferences(preferences)
    except Exception as err:
        raise server_error("Error updating user preferences", err) from err

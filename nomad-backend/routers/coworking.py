from fastapi import APIRouter, Body, Depends
from typing import Any, List
import logging

import schemas
from database import get_storage
from routers.utils import get_current_user_id, server_error
from services import planner_ai
from services.gemini_service import GeminiService, get_gemini_service
from storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[schemas.CoworkingSpaceResponse])
async def get_coworking_spaces(
    user_id: int = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage)
):
    """List the coworking spaces the current user has saved."""
    try:
        return storage.get_coworking_spaces(user_id)
    except Exception as err:
        raise server_error("Error fetching coworking spaces", err) from err


@router.post("", response_model=schemas.CoworkingSpaceResponse)
async def create_coworking_space(
    space: schemas.CoworkingSpaceCreate,
    storage: Storage = Depends(get_storage)
):
    """Save a coworking space."""
    try:
        return storage.create_coworking_space(space)
    except Exception as err:
        raise server_error("Error creating coworking space", err) from err


@router.post("/recommend")
async def recommend_coworking_spaces(
    preferences: Any = Body(...),
    gemini_service: GeminiService = Depends(get_gemini_service)
) -> Any:
    """Forward free-form search preferences to Gemini and return its recommendations."""
    try:
        return await planner_ai.get_coworking_recommendations(gemini_service, preferences)
    except Exception as err:
        raise server_error("Error getting coworking recommendations", err) from err

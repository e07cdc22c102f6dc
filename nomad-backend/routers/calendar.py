# ============ IMPORTS ============
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Any, List
import logging

import schemas
from database import get_storage
from routers.utils import get_current_user_id, server_error
from services import planner_ai
from services.gemini_service import GeminiService, get_gemini_service
from storage import Storage

logger = logging.getLogger(__name__)

# ============ ROUTER SETUP ============
# Note: No prefix here since it's added in main.py
router = APIRouter()

# ============ CALENDAR ENDPOINTS ============

@router.get("", response_model=List[schemas.CalendarEventResponse])
async def get_calendar_events(
    user_id: int = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage)
):
    """List the current user's calendar events."""
    try:
        return storage.get_calendar_events(user_id)
    except Exception as err:
        raise server_error("Error fetching calendar events", err) from err


@router.post("", response_model=schemas.CalendarEventResponse)
async def create_calendar_event(
    event: schemas.CalendarEventCreate,
    storage: Storage = Depends(get_storage)
):
    """
    Create a calendar event.

    Args:
        event: Validated event payload (camelCase JSON)
        storage: Record store (from dependency)

    Returns:
        schemas.CalendarEventResponse: The stored event with its assigned id
    """
    try:
        return storage.create_calendar_event(event)
    except Exception as err:
        raise server_error("Error creating calendar event", err) from err


@router.post("/analyze")
async def analyze_calendar(
    user_id: int = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
    gemini_service: GeminiService = Depends(get_gemini_service)
) -> Any:
    """Ask Gemini to find conflicts among the current user's events."""
    try:
        events = storage.get_calendar_events(user_id)
        return await planner_ai.analyze_calendar_conflicts(gemini_service, events)
    except Exception as err:
        raise server_error("Error analyzing calendar", err) from err


@router.put("/{event_id}", response_model=schemas.CalendarEventResponse)
async def update_calendar_event(
    event_id: int,
    event_update: schemas.CalendarEventUpdate,
    storage: Storage = Depends(get_storage)
):
    """
    Partially update a calendar event; fields left out of the body keep their values.

    Raises:
        HTTPException: 404 if the event does not exist
    """
    try:
        event = storage.update_calendar_event(event_id, event_update)
    except Exception as err:
        raise server_error("Error updating calendar event", err) from err

    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found"
        )
    return event


@router.delete("/{event_id}", response_model=schemas.DeleteResponse)
async def delete_calendar_event(
    event_id: int,
    storage: Storage = Depends(get_storage)
):
    """
    Delete a calendar event.

    Raises:
        HTTPException: 404 if the event does not exist (or was already deleted)
    """
    try:
        deleted = storage.delete_calendar_event(event_id)
    except Exception as err:
        raise server_error("Error deleting calendar event", err) from err

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found"
        )
    return schemas.DeleteResponse(success=True)

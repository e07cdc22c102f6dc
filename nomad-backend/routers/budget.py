# ============ IMPORTS ============
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Any, List
import logging

import schemas
from database import get_storage
from routers.utils import get_current_user, get_current_user_id, server_error
from services import planner_ai
from services.gemini_service import GeminiService, get_gemini_service
from storage import Storage

logger = logging.getLogger(__name__)

# ============ ROUTER SETUP ============
# Note: No prefix here since it's added in main.py
router = APIRouter()

# ============ BUDGET ENDPOINTS ============

@router.get("", response_model=List[schemas.BudgetEntryResponse])
async def get_budget_entries(
    user_id: int = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage)
):
    """List the current user's budget entries."""
    try:
        return storage.get_budget_entries(user_id)
    except Exception as err:
        raise server_error("Error fetching budget entries", err) from err


@router.post("", response_model=schemas.BudgetEntryResponse)
async def create_budget_entry(
    entry: schemas.BudgetEntryCreate,
    storage: Storage = Depends(get_storage)
):
    """
    Record an expense.

    Args:
        entry: Validated budget entry payload
        storage: Record store (from dependency)

    Returns:
        schemas.BudgetEntryResponse: The stored entry with its assigned id
    """
    try:
        return storage.create_budget_entry(entry)
    except Exception as err:
        raise server_error("Error creating budget entry", err) from err


@router.post("/analyze")
async def analyze_budget(
    current_user: schemas.UserRecord = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    gemini_service: GeminiService = Depends(get_gemini_service)
) -> Any:
    """
    Ask Gemini to break down the current user's spending.

    The user's current location and the next destination from their preferences
    give the model a cost-of-living reference.
    """
    try:
        entries = storage.get_budget_entries(current_user.id)
        preferences = storage.get_user_preferences(current_user.id)
        next_destination = preferences.next_destination if preferences else None

        return await planner_ai.analyze_budget(
            gemini_service,
            entries,
            current_location=current_user.current_location,
            next_destination=next_destination,
        )
    except Exception as err:
        raise server_error("Error analyzing budget", err) from err


@router.put("/{entry_id}", response_model=schemas.BudgetEntryResponse)
async def update_budget_entry(
    entry_id: int,
    entry_update: schemas.BudgetEntryUpdate,
    storage: Storage = Depends(get_storage)
):
    """
    Partially update a budget entry.

    Raises:
        HTTPException: 404 if the entry does not exist
    """
    try:
        entry = storage.update_budget_entry(entry_id, entry_update)
    except Exception as err:
        raise server_error("Error updating budget entry", err) from err

    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Budget entry not found"
        )
    return entry

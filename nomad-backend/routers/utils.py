from fastapi import Depends, HTTPException, status
import logging

import schemas
from database import DEMO_USER_ID, get_storage
from storage import Storage

logger = logging.getLogger(__name__)


def get_current_user_id() -> int:
    """
    Dependency for the id of the acting user.

    There is no authentication yet, so this is always the configured demo user.
    """
    return DEMO_USER_ID


async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage)
) -> schemas.UserRecord:
    """
    Dependency for getting the current user record.

    Raises:
        HTTPException: 404 if the user does not exist
    """
    user = storage.get_user(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


def server_error(message: str, err: Exception) -> HTTPException:
    """Log an unexpected failure and build the generic 500 response for it."""
    logger.error(f"{message}: {err}", exc_info=err)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=message
    )

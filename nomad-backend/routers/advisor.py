"""
AI-only endpoints: timezone planning, community, legal resources and the
general assistant. Request bodies are free-form and go to Gemini unmodified.
"""
import json
import logging
from typing import Any, List

from fastapi import APIRouter, Body, Depends, Query

import schemas
from database import get_storage
from routers.utils import get_current_user_id, server_error
from services import planner_ai
from services.gemini_service import GeminiService, get_gemini_service
from storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter()

ASSISTANT_MODULE = "assistant"


@router.post("/timezone/recommend")
async def recommend_meeting_times(
    team_info: Any = Body(...),
    gemini_service: GeminiService = Depends(get_gemini_service),
) -> Any:
    """Suggest meeting slots that work across the team's time zones."""
    try:
        return await planner_ai.get_timezone_recommendations(gemini_service, team_info)
    except Exception as err:
        raise server_error("Error getting time zone recommendations", err) from err


@router.post("/community/recommend")
async def recommend_communities(
    profile: Any = Body(...),
    gemini_service: GeminiService = Depends(get_gemini_service),
) -> Any:
    try:
        return await planner_ai.get_community_recommendations(gemini_service, profile)
    except Exception as err:
        raise server_error("Error getting community recommendations", err) from err


@router.post("/legal/resources")
async def find_legal_resources(
    query: Any = Body(...),
    gemini_service: GeminiService = Depends(get_gemini_service),
) -> Any:
    """Visa, tax and work-permission guidance for the question in the body."""
    try:
        return await planner_ai.get_legal_resources(gemini_service, query)
    except Exception as err:
        raise server_error("Error getting legal resources", err) from err


def _reply_text(reply: Any) -> str:
    if isinstance(reply, dict) and isinstance(reply.get("response"), str):
        return reply["response"]
    return json.dumps(reply, ensure_ascii=False)


def _record_exchange(storage: Storage, user_id: int, query: str, reply: Any) -> None:
    """Append the question and answer to the user's assistant conversation."""
    messages = [
        schemas.ChatMessage(role="user", content=query),
        schemas.ChatMessage(role="assistant", content=_reply_text(reply)),
    ]
    conversations = storage.get_ai_conversations(user_id, ASSISTANT_MODULE)
    if conversations:
        storage.append_ai_messages(conversations[-1].id, messages)
    else:
        storage.create_ai_conversation(schemas.AiConversationCreate(
            user_id=user_id,
            module=ASSISTANT_MODULE,
            messages=messages,
        ))


@router.post("/assistant")
async def ask_assistant(
    request: schemas.AssistantRequest,
    user_id: int = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
    gemini_service: GeminiService = Depends(get_gemini_service),
) -> Any:
    """
    Answer a free-form question and keep the exchange in the conversation history.

    Returns:
        Gemini's JSON answer ({"response", "relatedModules", "suggestedActions"})
    """
    try:
        reply = await planner_ai.get_assistant_response(gemini_service, request.query)
        _record_exchange(storage, user_id, request.query, reply)
        return reply
    except Exception as err:
        raise server_error("Error getting assistant response", err) from err


@router.get("/conversations", response_model=List[schemas.AiConversationResponse])
async def get_conversations(
    module: str = Query(ASSISTANT_MODULE, min_length=1, description="Planner module"),
    user_id: int = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
):
    """List the current user's AI conversations for one module."""
    try:
        return storage.get_ai_conversations(user_id, module)
    except Exception as err:
        raise server_error("Error fetching conversations", err) from err

# api/chat.py
"""
Chat API Endpoints
Conversational interface that collects a transfer itinerary,
plus chat history for the web client.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from loguru import logger

from ..agents.concierge import transfer_concierge
from ..interfaces.conversation_store import chat_session_store
from ..schemas.transfer_schemas import (
    ProcessMessageRequest,
    ProcessMessageResponse,
    ChatSessionsRequest
)


router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/process-message", response_model=ProcessMessageResponse, response_model_by_alias=True)
async def process_message(request: ProcessMessageRequest):
    """
    Process one chat turn.

    The reply carries the current itinerary draft in `extractedData`;
    `needsClarification` is false once the itinerary is complete.
    """
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    logger.info(f"process-message: session={request.session_id}, lang={request.user_language}")
    result = await transfer_concierge.process_message(
        request.message,
        language=request.user_language,
        session_id=request.session_id,
        user_id=request.user_id
    )
    return ProcessMessageResponse(
        response=result["response"],
        extracted_data=result["extractedData"],
        needs_clarification=result["needsClarification"],
        session_id=result["sessionId"]
    )


@router.delete("/process-message/{session_id}")
async def reset_conversation(session_id: str):
    """Start the itinerary over for a session"""
    transfer_concierge.reset(session_id)
    return {"success": True, "sessionId": session_id}


@router.get("/chat-history")
async def get_chat_history(
    session_id: Optional[str] = Query(None, alias="sessionId"),
    user_id: Optional[str] = Query(None, alias="userId")
):
    """Messages of one session, oldest first"""
    if not session_id:
        raise HTTPException(status_code=400, detail="Session ID is required")

    session = await chat_session_store.get_session(session_id)
    if session is not None and user_id and session.user_id != str(user_id):
        raise HTTPException(status_code=404, detail="Session not found")

    messages = await chat_session_store.get_messages(session_id)
    return {"messages": [m.to_dict() for m in messages]}


@router.post("/chat-history")
async def list_chat_sessions(request: ChatSessionsRequest):
    """User's sessions, newest first"""
    if not request.user_id:
        raise HTTPException(status_code=400, detail="User ID is required")

    sessions = await chat_session_store.list_sessions(request.user_id)
    return {"sessions": [s.to_dict() for s in sessions]}

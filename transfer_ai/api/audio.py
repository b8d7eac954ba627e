# api/audio.py
"""
Audio Transcription Endpoint
Voice input for the chat widget.
"""

from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from loguru import logger

from ..errors import LLMUnavailableError
from ..llm.client import llm_client
from ..schemas.transfer_schemas import TranscriptionResponse


router = APIRouter(prefix="/api", tags=["audio"])


@router.post("/transcribe-audio", response_model=TranscriptionResponse)
async def transcribe_audio(audio: Optional[UploadFile] = File(None)):
    if audio is None:
        raise HTTPException(status_code=400, detail="No audio file provided")

    content = await audio.read()
    if not content:
        raise HTTPException(status_code=400, detail="No audio file provided")

    logger.info(f"Transcribing {audio.filename} ({len(content)} bytes)")
    try:
        text = await llm_client.transcribe(audio.filename or "recording.webm", content, audio.content_type)
    except LLMUnavailableError as e:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to transcribe audio", "message": str(e)}
        )

    return TranscriptionResponse(transcription=text)

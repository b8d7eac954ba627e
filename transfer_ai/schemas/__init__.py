# schemas/__init__.py
"""
Pydantic Schemas Package

Contains the Pydantic v2 models for:
- The itinerary draft collected through chat
- API requests/responses
- Chat history records
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .transfer_schemas import (
        # Enums
        DraftStatus, VehicleCategory,
        # Draft
        ItineraryDraft,
        # API
        ProcessMessageRequest, ProcessMessageResponse,
        AnalyzeTransfersRequest, AnalyzeTransfersResponse,
        TranscriptionResponse,
        # History
        ChatSessionsRequest,
    )

__all__ = [
    "DraftStatus",
    "VehicleCategory",
    "ItineraryDraft",
    "ProcessMessageRequest",
    "ProcessMessageResponse",
    "AnalyzeTransfersRequest",
    "AnalyzeTransfersResponse",
    "TranscriptionResponse",
    "ChatSessionsRequest",
]

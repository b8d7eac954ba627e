# api/__init__.py
"""
API Endpoints Package

Contains all FastAPI routers for the concierge service:
- chat: Conversational itinerary collection and chat history
- transfers: Offer aggregation and supplier narratives
- audio: Voice input transcription
"""

from typing import TYPE_CHECKING

# Lazy imports to avoid circular dependencies
if TYPE_CHECKING:
    from .chat import router as chat_router
    from .transfers import router as transfers_router
    from .audio import router as audio_router

__all__ = [
    "chat_router",
    "transfers_router",
    "audio_router"
]

# interfaces/__init__.py
"""
Interfaces Package

Contains external clients and stores:
- rate_client: Rates proxy client and offer parsing
- search_client: Web search (address checks, supplier lookups)
- locations: Place name -> marketplace location id
- session_store: Itinerary drafts per session
- conversation_store: Chat sessions and messages
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .rate_client import rate_client, RateQuoteClient, RateOffer
    from .search_client import search_client, SearchClient, AddressCheck
    from .locations import get_location_id, get_location_type
    from .session_store import draft_store, DraftStore
    from .conversation_store import chat_session_store, ChatSessionStore

__all__ = [
    "rate_client",
    "RateQuoteClient",
    "RateOffer",
    "search_client",
    "SearchClient",
    "AddressCheck",
    "get_location_id",
    "get_location_type",
    "draft_store",
    "DraftStore",
    "chat_session_store",
    "ChatSessionStore"
]

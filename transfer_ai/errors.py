# errors.py
"""
Exception hierarchy for the transfer service.

TransferServiceError
├── UpstreamError          <- rates marketplace unreachable or malformed
│   └── NoOffersFound      <- marketplace answered with zero offers
├── InvalidItineraryError  <- itinerary cannot be turned into a rates query
├── SearchProviderError    <- web search provider failed
└── LLMUnavailableError    <- no LLM configured or the call failed
"""

from typing import Optional


class TransferServiceError(Exception):
    """Base class for all service errors"""


class UpstreamError(TransferServiceError):
    """Rates marketplace failed (HTTP, timeout, payload shape)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NoOffersFound(UpstreamError):
    """The marketplace answered but no offers could be parsed"""


class InvalidItineraryError(TransferServiceError):
    """Itinerary date/time or fields cannot be normalised"""


class SearchProviderError(TransferServiceError):
    """Web search provider request failed"""


class LLMUnavailableError(TransferServiceError):
    """LLM is not configured or the completion failed"""

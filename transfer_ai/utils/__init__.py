"""
Utilities Module
Helper functions for the transfer service
"""

from .language import (
    detect_language,
    resolve_language,
    LANGUAGE_KEYWORDS
)

__all__ = [
    "detect_language",
    "resolve_language",
    "LANGUAGE_KEYWORDS"
]

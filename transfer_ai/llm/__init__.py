# llm/__init__.py
"""
LLM Components Package

Contains LLM-powered components:
- client: OpenAI chat, JSON completion and transcription
- extractor: Collect transfer details from chat turns
- narrator: Per-supplier comparison narratives
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .client import llm_client, LLMClient
    from .extractor import conversation_extractor, ConversationExtractor, ExtractionResult
    from .narrator import supplier_narrator, SupplierNarrator

__all__ = [
    "llm_client",
    "LLMClient",
    "conversation_extractor",
    "ConversationExtractor",
    "ExtractionResult",
    "supplier_narrator",
    "SupplierNarrator"
]

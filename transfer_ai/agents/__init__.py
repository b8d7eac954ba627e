# agents/__init__.py
"""
AI Agents Package

Contains the core agents:
- TransferConcierge: Chat-facing agent collecting the itinerary
- TransferAggregationPipeline: Offers, enrichment and narratives
- ProviderEnrichmentCache: Supplier ratings and promotions
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .concierge import transfer_concierge, TransferConcierge
    from .aggregation import transfer_pipeline, TransferAggregationPipeline, AggregationResult
    from .enrichment import enrichment_cache, ProviderEnrichmentCache, SupplierEnrichment

__all__ = [
    "transfer_concierge",
    "TransferConcierge",
    "transfer_pipeline",
    "TransferAggregationPipeline",
    "AggregationResult",
    "enrichment_cache",
    "ProviderEnrichmentCache",
    "SupplierEnrichment"
]

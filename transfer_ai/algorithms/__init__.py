"""
Algorithms Module
Offer ranking and grouping helpers
"""

from .offer_ranking import (
    RankedOffer,
    rank_offers,
    group_by_supplier,
    category_counts,
    format_price
)

__all__ = [
    "RankedOffer",
    "rank_offers",
    "group_by_supplier",
    "category_counts",
    "format_price"
]

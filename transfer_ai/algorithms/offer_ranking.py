"""
Offer Ranking
Merges supplier enrichment into each offer and ranks offers by price

Ranking rules:
1. Stable ascending sort on price (equal prices keep arrival order)
2. Ranks are 1-based and contiguous
3. Offers of the same supplier share one enrichment record
"""

from collections import Counter, OrderedDict
from dataclasses import dataclass
from typing import Dict, Any, List

from loguru import logger

from ..interfaces.rate_client import RateOffer
from ..agents.enrichment import SupplierEnrichment


@dataclass
class RankedOffer:
    """A RateOffer with its supplier enrichment, rank and narrative"""
    offer: RateOffer
    enrichment: SupplierEnrichment
    rank: int
    analysis: str = ""

    @property
    def supplier_name(self) -> str:
        return self.offer.supplier_name

    @property
    def price(self) -> float:
        return self.offer.price

    def to_dict(self) -> Dict[str, Any]:
        data = self.offer.to_dict()
        data.update(self.enrichment.to_dict())
        data["rank"] = self.rank
        data["analysis"] = self.analysis
        return data


def rank_offers(
    offers: List[RateOffer],
    enrichments: Dict[str, SupplierEnrichment]
) -> List[RankedOffer]:
    """Attach enrichment and rank by price ascending"""
    ordered = sorted(offers, key=lambda offer: offer.price)

    ranked = [
        RankedOffer(
            offer=offer,
            enrichment=enrichments.get(offer.supplier_name) or SupplierEnrichment.not_found(offer.supplier_name),
            rank=position
        )
        for position, offer in enumerate(ordered, 1)
    ]

    if ranked:
        logger.info(
            f"Ranked {len(ranked)} offers: cheapest={ranked[0].price}, "
            f"most expensive={ranked[-1].price}, categories={dict(category_counts(ranked))}"
        )
    return ranked


def group_by_supplier(ranked: List[RankedOffer]) -> "OrderedDict[str, List[RankedOffer]]":
    """Suppliers in order of first appearance in the ranked list"""
    groups: "OrderedDict[str, List[RankedOffer]]" = OrderedDict()
    for item in ranked:
        groups.setdefault(item.supplier_name, []).append(item)
    return groups


def category_counts(ranked: List[RankedOffer]) -> Counter:
    return Counter(item.offer.vehicle_category for item in ranked)


def format_price(price: float) -> str:
    """45.0 -> '45', 39.5 -> '39.5'"""
    return f"{price:.2f}".rstrip("0").rstrip(".")

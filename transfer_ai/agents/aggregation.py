# agents/aggregation.py
"""
Transfer Aggregation Pipeline

Flow for one complete itinerary:
1. Fetch offers from the rates proxy
2. Enrich the unique supplier set (one batch)
3. Rank offers by price
4. Narrate each supplier concurrently
5. Compose the grouped message

`run` never raises; every failure becomes an unsuccessful result.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Dict, Any, List, Union

from loguru import logger

from ..algorithms.offer_ranking import RankedOffer, rank_offers, group_by_supplier, format_price
from ..errors import NoOffersFound, InvalidItineraryError, UpstreamError
from ..interfaces.rate_client import RateQuoteClient, rate_client as default_rate_client
from ..llm.narrator import SupplierNarrator, supplier_narrator as default_narrator
from ..llm.prompts import narrative_language, no_offers_message
from ..schemas.transfer_schemas import ItineraryDraft
from .enrichment import ProviderEnrichmentCache, enrichment_cache as default_enrichment


@dataclass
class AggregationResult:
    success: bool
    message: str
    data: Optional[List[Dict[str, Any]]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message, "data": self.data}


def compose_message(
    groups: Dict[str, List[RankedOffer]],
    narratives: Dict[str, str],
    language: str = "en"
) -> str:
    """Supplier blocks in ranked order, each followed by its priced options"""
    options_label = narrative_language(language)["options"]
    blocks = []
    for supplier, items in groups.items():
        lines = [
            f"  • €{format_price(item.price)} - {item.offer.vehicle_description}"
            for item in items
        ]
        blocks.append(
            f"**{supplier}**\n{narratives.get(supplier, '')}\n\n**{options_label}:**\n" + "\n".join(lines)
        )
    return "\n\n".join(blocks)


class TransferAggregationPipeline:
    """Offers + enrichment + narratives for one itinerary"""

    def __init__(
        self,
        rates: Optional[RateQuoteClient] = None,
        enrichment: Optional[ProviderEnrichmentCache] = None,
        narrator: Optional[SupplierNarrator] = None
    ):
        self.rates = rates or default_rate_client
        self.enrichment = enrichment or default_enrichment
        self.narrator = narrator or default_narrator

    async def run(
        self,
        itinerary: Union[ItineraryDraft, Dict[str, Any]],
        language: Optional[str] = "en"
    ) -> AggregationResult:
        language = (language or "en")[:2].lower()
        if isinstance(itinerary, dict):
            itinerary = ItineraryDraft().merge(itinerary)

        try:
            offers = await self.rates.search(itinerary, language)
        except NoOffersFound as e:
            logger.info(f"No offers: {e}")
            return AggregationResult(success=False, message=no_offers_message(language))
        except InvalidItineraryError as e:
            logger.warning(f"Invalid itinerary: {e}")
            return AggregationResult(success=False, message=f"Failed to search for transfers: error: {e}")
        except UpstreamError as e:
            logger.error(f"Rates search failed: {e}")
            return AggregationResult(success=False, message=f"Failed to search for transfers: error: {e}")
        except Exception as e:
            logger.exception(f"Unexpected rates search failure: {e}")
            return AggregationResult(success=False, message=f"Failed to search for transfers: error: {e}")

        try:
            enrichments = await self.enrichment.enrich(offer.supplier_name for offer in offers)
            ranked = rank_offers(offers, enrichments)
            groups = group_by_supplier(ranked)
            narratives = await self._narrate_all(groups, itinerary, language)
        except Exception as e:
            logger.exception(f"Aggregation failed: {e}")
            return AggregationResult(success=False, message=f"Failed to analyze transfers: error: {e}")

        for item in ranked:
            item.analysis = narratives.get(item.supplier_name, "")

        logger.info(f"Aggregated {len(ranked)} offers from {len(groups)} suppliers")
        return AggregationResult(
            success=True,
            message=compose_message(groups, narratives, language),
            data=[item.to_dict() for item in ranked]
        )

    async def _narrate_all(
        self,
        groups: Dict[str, List[RankedOffer]],
        itinerary: ItineraryDraft,
        language: str
    ) -> Dict[str, str]:
        suppliers = list(groups)
        results = await asyncio.gather(
            *(self.narrator.narrate(groups[name][0], itinerary, language) for name in suppliers),
            return_exceptions=True
        )

        narratives = {}
        for name, result in zip(suppliers, results):
            if isinstance(result, Exception):
                logger.error(f"Narrative failed for {name}: {result}")
                narratives[name] = f"Analysis error for {name}: {result}"
            else:
                narratives[name] = result
        return narratives


# ============================================
# Global Instance
# ============================================

transfer_pipeline = TransferAggregationPipeline()

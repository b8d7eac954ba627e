# llm/narrator.py
"""
Supplier Narrator
Writes the per-supplier comparison shown to the user
(Vehicle / Rating / Cashback & Coupons) in the user's language.
"""

from typing import Optional

from loguru import logger

from ..algorithms.offer_ranking import RankedOffer, format_price
from ..schemas.transfer_schemas import ItineraryDraft
from .client import LLMClient, llm_client as default_llm_client
from .prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    NARRATIVE_REQUEST_PROMPT,
    narrative_language,
    time_context
)


SECTION_HEADERS = {
    "en": ("Vehicle", "Rating", "Cashback & Coupons"),
    "ru": ("Машина", "Рейтинг", "Кэшбек и Купоны"),
    "de": ("Fahrzeug", "Bewertung", "Cashback & Gutscheine"),
    "fr": ("Véhicule", "Note", "Cashback & Coupons"),
    "zh": ("车辆", "评分", "返现和优惠券"),
}


def option_details(item: RankedOffer) -> str:
    """Compact description of a supplier's cheapest offer for the prompt"""
    offer = item.offer
    return (
        f"{item.rank}. {offer.supplier_name} - €{format_price(offer.price)}\n"
        f"   Vehicle: {offer.vehicle_description or offer.model_description or 'Standard Vehicle'}\n"
        f"   Capacity: {offer.max_passengers}\n"
        f"   {item.enrichment.rating_text()}{item.enrichment.cashback_text()}\n"
        f"   Duration: {offer.duration_minutes}"
    )


class SupplierNarrator:
    """One narrative per supplier, generated by the LLM"""

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or default_llm_client

    async def narrate(self, item: RankedOffer, itinerary: ItineraryDraft, language: str = "en") -> str:
        """
        Narrate one supplier. Raises LLMUnavailableError when the LLM call fails;
        without any configured LLM a plain template narrative is returned.
        """
        if not self.llm.configured:
            return self.template_narrative(item, language)

        strings = narrative_language(language)
        system_prompt = ANALYSIS_SYSTEM_PROMPT.format(language=language.upper(), **time_context())
        user_prompt = NARRATIVE_REQUEST_PROMPT.format(
            language=language.upper(),
            request=strings["request"],
            origin=itinerary.from_,
            destination=itinerary.to,
            passengers=itinerary.passengers or 1,
            luggage=itinerary.luggage or 1,
            date=itinerary.date or "today",
            time=itinerary.time or "flexible",
            option_details=option_details(item),
            recommend=strings["recommend"]
        )

        logger.info(f"Generating narrative for {item.supplier_name} ({language})")
        return await self.llm.complete(system_prompt, user_prompt, temperature=0.7, max_tokens=1000)

    def template_narrative(self, item: RankedOffer, language: str = "en") -> str:
        vehicle, rating, cashback = SECTION_HEADERS.get(language[:2], SECTION_HEADERS["en"])
        offer = item.offer
        enrichment = item.enrichment

        vehicle_line = offer.vehicle_description or offer.model_description or "Standard Vehicle"
        if offer.car_example:
            vehicle_line += f" ({offer.car_example})"

        promo_line = enrichment.cashback_text().replace(" - Cashback: ", "", 1)
        if enrichment.coupon_codes:
            promo_line += f"; codes: {', '.join(enrichment.coupon_codes)}"

        return (
            f"**{vehicle}**\n- {vehicle_line}, up to {offer.max_passengers} passengers, {offer.bags} bags\n\n"
            f"**{rating}**\n- {enrichment.rating_text().replace('Rating: ', '', 1)}\n\n"
            f"**{cashback}**\n- {promo_line}"
        )


# ============================================
# Global Instance
# ============================================

supplier_narrator = SupplierNarrator()

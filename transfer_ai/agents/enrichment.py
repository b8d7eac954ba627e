# agents/enrichment.py
"""
Provider Enrichment
Looks up ratings, cashback/coupons and the official website for each
transfer supplier via the web search provider.

Guarantees:
- One lookup pass per unique supplier per `enrich` call
- All suppliers processed concurrently
- A failing supplier gets a "not found" record; the others are unaffected
"""

import asyncio
import re
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Iterable

from loguru import logger

from ..config import settings
from ..errors import LLMUnavailableError, SearchProviderError
from ..interfaces.search_client import SearchClient, search_client as default_search_client
from ..llm.client import LLMClient, llm_client as default_llm_client
from ..llm.prompts import RATINGS_JSON_PROMPT, CASHBACK_JSON_PROMPT, time_context


RATING_SOURCES = {
    "trustpilot": "Trustpilot",
    "tripadvisor": "TripAdvisor",
    "general": "Google",
}

SNIPPET_SCORE = re.compile(r"(\d(?:[.,]\d{1,2})?)\s*(?:/|out of)\s*(5|10)\b", re.IGNORECASE)
SNIPPET_COUNT = re.compile(r"([\d][\d,.\s]*)\s*(?:reviews|ratings|bewertungen|отзыв)", re.IGNORECASE)
CASHBACK_PERCENT = re.compile(r"(\d+(?:[.,]\d+)?)\s*%\s*cash\s*-?\s*back", re.IGNORECASE)
COUPON_DISCOUNT = re.compile(r"(up to \d+\s*% off|\d+\s*% (?:off|discount))", re.IGNORECASE)
COUPON_CODE = re.compile(r"\b(?:code|coupon|promo)[:\s]+([A-Z0-9]{4,15})\b")


@dataclass
class SupplierEnrichment:
    """Ratings and promotions found for one supplier"""
    supplier_name: str
    found: bool = False
    rating_source: Optional[str] = None
    rating_score: Optional[float] = None
    rating_count: Optional[int] = None
    rating_url: Optional[str] = None
    cashback_available: bool = False
    cashback_percentage: Optional[str] = None
    cashback_conditions: Optional[str] = None
    cashback_description: Optional[str] = None
    coupons_available: bool = False
    coupons_discount: Optional[str] = None
    coupons_conditions: Optional[str] = None
    coupons_description: Optional[str] = None
    coupon_codes: List[str] = field(default_factory=list)
    website_url: Optional[str] = None

    @classmethod
    def not_found(cls, supplier_name: str) -> "SupplierEnrichment":
        return cls(supplier_name=supplier_name)

    def rating_text(self) -> str:
        if self.rating_score is None:
            return "Rating: Not found"
        if self.rating_count and self.rating_count > 1:
            return f"Rating: {self.rating_score} out of 5 (based on {self.rating_count} reviews)"
        return f"Rating: {self.rating_score} out of 5 ({self.rating_source})"

    def cashback_text(self) -> str:
        if self.cashback_available:
            text = f" - Cashback: {self.cashback_percentage or 'Available'}"
            if self.cashback_conditions:
                text += f" ({self.cashback_conditions})"
            return text
        if self.coupons_available:
            text = f" - Cashback: Coupons: {self.coupons_discount or 'Available'}"
            if self.coupons_conditions:
                text += f" ({self.coupons_conditions})"
            return text
        return " - Cashback: None available"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": self.found,
            "ratingSource": self.rating_source,
            "ratingScore": self.rating_score,
            "ratingCount": self.rating_count,
            "ratingUrl": self.rating_url,
            "cashbackAvailable": self.cashback_available,
            "cashbackDescription": self.cashback_description,
            "couponsAvailable": self.coupons_available,
            "couponsDescription": self.coupons_description,
            "couponCodes": list(self.coupon_codes),
            "websiteUrl": self.website_url,
        }


def unique_suppliers(names: Iterable[Optional[str]]) -> List[str]:
    """Order-preserving de-duplication; blanks dropped"""
    seen = []
    for name in names:
        if name and name.strip() and name not in seen:
            seen.append(name)
    return seen


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(str(value).replace(",", "."))
    except ValueError:
        return None


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    digits = re.sub(r"[^\d]", "", str(value))
    return int(digits) if digits else None


def _normalise_score(score: Optional[float], scale: float = 5.0) -> Optional[float]:
    if score is None or score <= 0:
        return None
    if scale == 10 or score > 5:
        score = score / 2
    return round(min(score, 5.0), 1)


def format_search_results(title: str, sections: Dict[str, Dict[str, Any]], limit: int = 3) -> str:
    """Markdown digest of search results for the LLM"""
    lines = [f"# {title}", ""]
    for label, results in sections.items():
        organic = (results or {}).get("organic") or []
        lines.append(f"## {label}")
        lines.append(f"- Results found: {len(organic)}")
        for index, item in enumerate(organic[:limit], 1):
            lines.append(f"### Result {index}:")
            lines.append(f"- Title: {item.get('title', '')}")
            lines.append(f"- URL: {item.get('link', '')}")
            lines.append(f"- Snippet: {item.get('snippet', '')}")
            if item.get("rating"):
                lines.append(f"- Rating: {item['rating']}")
            if item.get("ratingCount"):
                lines.append(f"- Review count: {item['ratingCount']}")
            lines.append("")
    return "\n".join(lines)


class ProviderEnrichmentCache:
    """
    Batch-scoped supplier enrichment.
    Each `enrich` call builds its own cache; nothing survives between calls.
    """

    def __init__(
        self,
        search: Optional[SearchClient] = None,
        llm: Optional[LLMClient] = None,
        city: Optional[str] = None,
        country: Optional[str] = None
    ):
        self.search = search or default_search_client
        self.llm = llm or default_llm_client
        self.city = city or settings.SERVICE_CITY
        self.country = country or settings.SERVICE_COUNTRY

    async def enrich(self, supplier_names: Iterable[Optional[str]]) -> Dict[str, SupplierEnrichment]:
        """Enrich every unique supplier once, concurrently"""
        suppliers = unique_suppliers(supplier_names)
        logger.info(f"Enriching {len(suppliers)} unique suppliers")

        results = await asyncio.gather(*(self._enrich_supplier(name) for name in suppliers))
        return dict(zip(suppliers, results))

    async def _enrich_supplier(self, name: str) -> SupplierEnrichment:
        try:
            ratings_raw, promos_raw, website = await asyncio.gather(
                self._fetch_ratings(name),
                self._fetch_promotions(name),
                self._fetch_website(name)
            )

            enrichment = SupplierEnrichment(supplier_name=name, website_url=website)
            await self._apply_ratings(enrichment, ratings_raw)
            await self._apply_promotions(enrichment, promos_raw)
            enrichment.found = bool(
                enrichment.rating_score is not None or enrichment.cashback_available
                or enrichment.coupons_available or enrichment.website_url
            )

            logger.info(
                f"Enriched {name}: rating={enrichment.rating_score}, "
                f"cashback={enrichment.cashback_available}, coupons={enrichment.coupons_available}"
            )
            return enrichment

        except Exception as e:
            logger.error(f"Enrichment failed for {name}: {e}")
            return SupplierEnrichment.not_found(name)

    # ============================================
    # Search fan-out
    # ============================================

    async def _gather_searches(self, name: str, lookups: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        keys = list(lookups)
        outcomes = await asyncio.gather(*(lookups[key](name) for key in keys), return_exceptions=True)

        results = {}
        for key, outcome in zip(keys, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, SearchProviderError):
                    raise outcome
                logger.warning(f"{key} search failed for {name}: {outcome}")
                outcome = {"organic": []}
            results[key] = outcome
        return results

    async def _fetch_ratings(self, name: str) -> Dict[str, Dict[str, Any]]:
        return await self._gather_searches(name, {
            "trustpilot": self.search.search_trustpilot,
            "tripadvisor": self.search.search_tripadvisor,
            "general": self.search.search_reviews,
        })

    async def _fetch_promotions(self, name: str) -> Dict[str, Dict[str, Any]]:
        return await self._gather_searches(name, {
            "cashback": self.search.search_cashback,
            "coupon": self.search.search_coupons,
        })

    async def _fetch_website(self, name: str) -> Optional[str]:
        try:
            website = await self.search.find_website(name)
        except SearchProviderError as e:
            logger.warning(f"Website search failed for {name}: {e}")
            return None
        return website.get("websiteUrl") if website.get("found") else None

    # ============================================
    # Ratings
    # ============================================

    async def _apply_ratings(self, enrichment: SupplierEnrichment, raw: Dict[str, Dict[str, Any]]):
        if not any((raw.get(key) or {}).get("organic") for key in RATING_SOURCES):
            return

        best = None
        if self.llm.configured:
            best = await self._llm_best_rating(enrichment.supplier_name, raw)
        if best is None:
            best = self._heuristic_best_rating(raw)
        if best is None:
            return

        enrichment.rating_source = best.get("source")
        enrichment.rating_score = _normalise_score(_to_float(best.get("score")))
        enrichment.rating_count = _to_int(best.get("count"))
        enrichment.rating_url = best.get("url")

    async def _llm_best_rating(self, name: str, raw: Dict[str, Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        prompt = RATINGS_JSON_PROMPT.format(
            supplier=name,
            city=self.city,
            country=self.country,
            search_results=format_search_results(f"Rating search results for {name}", {
                "Trustpilot": raw.get("trustpilot"),
                "TripAdvisor": raw.get("tripadvisor"),
                "General ratings": raw.get("general"),
            }),
            **time_context()
        )
        try:
            analysis = await self.llm.complete_json(prompt, f"Extract the ratings for {name} as JSON.")
        except LLMUnavailableError as e:
            logger.warning(f"LLM rating summary failed for {name}, using heuristic: {e}")
            return None

        best = analysis.get("bestRating") if analysis.get("found") else None
        if isinstance(best, dict) and _to_float(best.get("score")) is not None:
            return best
        return None

    def _heuristic_best_rating(self, raw: Dict[str, Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        candidates = []
        for key, label in RATING_SOURCES.items():
            for item in (raw.get(key) or {}).get("organic") or []:
                score = _to_float(item.get("rating"))
                count = _to_int(item.get("ratingCount"))
                scale = 5.0

                snippet = f"{item.get('title', '')} {item.get('snippet', '')}"
                if score is None:
                    match = SNIPPET_SCORE.search(snippet)
                    if match:
                        score = _to_float(match.group(1))
                        scale = float(match.group(2))
                if count is None:
                    match = SNIPPET_COUNT.search(snippet)
                    if match:
                        count = _to_int(match.group(1))

                if score is None:
                    continue

                link = item.get("link") or ""
                source = label
                for domain, domain_label in (("trustpilot", "Trustpilot"), ("tripadvisor", "TripAdvisor")):
                    if domain in link:
                        source = domain_label

                candidates.append({
                    "source": source,
                    "score": _normalise_score(score, scale),
                    "count": count or 0,
                    "url": link or None,
                })

        if not candidates:
            return None

        # Most reviewed wins; ties broken by score
        return max(candidates, key=lambda c: (c["count"], c["score"] or 0))

    # ============================================
    # Cashback & coupons
    # ============================================

    async def _apply_promotions(self, enrichment: SupplierEnrichment, raw: Dict[str, Dict[str, Any]]):
        if not any((raw.get(key) or {}).get("organic") for key in ("cashback", "coupon")):
            return

        analysis = None
        if self.llm.configured:
            analysis = await self._llm_promotions(enrichment.supplier_name, raw)
        if analysis is None:
            analysis = self._heuristic_promotions(raw)

        cashback = analysis.get("cashback") or {}
        coupons = analysis.get("coupons") or {}

        enrichment.cashback_available = bool(cashback.get("available"))
        enrichment.cashback_percentage = cashback.get("percentage")
        enrichment.cashback_conditions = cashback.get("conditions")
        enrichment.cashback_description = cashback.get("description")
        enrichment.coupons_available = bool(coupons.get("available"))
        enrichment.coupons_discount = coupons.get("discount")
        enrichment.coupons_conditions = coupons.get("conditions")
        enrichment.coupons_description = coupons.get("description")
        enrichment.coupon_codes = [str(code) for code in coupons.get("codes") or []]

    async def _llm_promotions(self, name: str, raw: Dict[str, Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        prompt = CASHBACK_JSON_PROMPT.format(
            supplier=name,
            city=self.city,
            country=self.country,
            search_results=format_search_results(f"Cashback and coupon search results for {name}", {
                "Cashback": raw.get("cashback"),
                "Coupons": raw.get("coupon"),
            }),
            **time_context()
        )
        try:
            analysis = await self.llm.complete_json(prompt, f"Extract cashback and coupon offers for {name} as JSON.")
        except LLMUnavailableError as e:
            logger.warning(f"LLM promotion summary failed for {name}, using heuristic: {e}")
            return None

        if not isinstance(analysis, dict) or "cashback" not in analysis and "coupons" not in analysis:
            return None
        return analysis

    def _heuristic_promotions(self, raw: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        cashback: Dict[str, Any] = {"available": False}
        for item in (raw.get("cashback") or {}).get("organic") or []:
            match = CASHBACK_PERCENT.search(f"{item.get('title', '')} {item.get('snippet', '')}")
            if match:
                cashback = {
                    "available": True,
                    "percentage": f"{match.group(1)}%",
                    "description": item.get("title"),
                    "url": item.get("link"),
                }
                break

        coupons: Dict[str, Any] = {"available": False, "codes": []}
        for item in (raw.get("coupon") or {}).get("organic") or []:
            text = f"{item.get('title', '')} {item.get('snippet', '')}"
            discount = COUPON_DISCOUNT.search(text)
            codes = COUPON_CODE.findall(text)
            if discount or codes:
                coupons = {
                    "available": True,
                    "discount": discount.group(1) if discount else None,
                    "codes": codes,
                    "description": item.get("title"),
                    "url": item.get("link"),
                }
                break

        return {"found": cashback["available"] or coupons["available"], "cashback": cashback, "coupons": coupons}


# ============================================
# Global Instance
# ============================================

enrichment_cache = ProviderEnrichmentCache()

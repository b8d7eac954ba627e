# interfaces/search_client.py
"""
Web search provider client (Serper Google Search API)

Used for:
- Checking that a free-text address lies in the service area
- Supplier rating, cashback/coupon and website lookups
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, List

import httpx
from loguru import logger

from ..config import settings
from ..errors import SearchProviderError


AIRPORT_INDICATORS = ["airport", "flughafen", "schwechat", "аэропорт"]
OTHER_CITY_INDICATORS = ["munich", "münchen", "berlin", "paris", "london", "rome", "madrid"]

# Local names of the service city/country
AREA_ALIASES = {
    "vienna": ["wien", "вена"],
    "austria": ["österreich"],
}


@dataclass
class AddressCheck:
    """Result of validating an address against the service area"""
    address: str
    in_service_area: bool
    location: Optional[str]
    confidence: str  # high | medium | low
    clarification: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SearchClient:
    """Thin async wrapper around the Serper search endpoint"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        city: Optional[str] = None,
        country: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key if api_key is not None else settings.SERPER_API_KEY
        self.api_url = api_url or settings.SERPER_API_URL
        self.city = city or settings.SERVICE_CITY
        self.country = country or settings.SERVICE_COUNTRY
        self.timeout = timeout
        self._transport = transport

        if not self.api_key:
            logger.warning("SearchClient: SERPER_API_KEY not configured, lookups will fail")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _area_indicators(self) -> List[str]:
        indicators = []
        for name in (self.city, self.country):
            name = name.lower()
            indicators.append(name)
            indicators.extend(AREA_ALIASES.get(name, []))
        return indicators

    async def search(self, query: str) -> Dict[str, Any]:
        """
        Run one search. Returns the provider JSON with an `organic` list.
        An exhausted credit balance is reported as an empty result.
        """
        if not self.api_key:
            raise SearchProviderError("Search API key not configured")

        logger.info(f"Search query: {query}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
                    json={"q": query, "type": "search", "engine": "google"}
                )
        except httpx.HTTPError as e:
            raise SearchProviderError(f"Search request failed: {e}") from e

        if response.status_code == 400 and "Not enough credits" in response.text:
            logger.error("Search provider: not enough credits, returning empty results")
            return {"organic": []}

        if not response.is_success:
            raise SearchProviderError(f"Search API error: {response.status_code} {response.reason_phrase}")

        try:
            data = response.json()
        except ValueError as e:
            raise SearchProviderError(f"Search API returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise SearchProviderError("Search API returned an unexpected payload")

        data.setdefault("organic", [])
        return data

    # ============================================
    # Address validation
    # ============================================

    async def check_address(self, address: str) -> AddressCheck:
        """Decide whether an address lies inside the service area"""
        not_in_area = f"This location is not in {self.city}. Please provide a {self.city} address or landmark."
        address_lower = address.lower()

        if any(indicator in address_lower for indicator in AIRPORT_INDICATORS):
            return AddressCheck(
                address=address,
                in_service_area=True,
                location=f"{self.city} Airport, {self.country}",
                confidence="high"
            )

        try:
            results = await self.search(f"{address} {self.city} {self.country} location")
        except SearchProviderError as e:
            logger.error(f"Address check failed for '{address}': {e}")
            return AddressCheck(
                address=address,
                in_service_area=False,
                location=None,
                confidence="low",
                clarification="Error occurred while searching for this address."
            )

        organic = results.get("organic") or []
        if not organic:
            return AddressCheck(
                address=address,
                in_service_area=False,
                location=None,
                confidence="low",
                clarification="No search results found for this address."
            )

        texts = [
            f"{item.get('title', '')} {item.get('snippet', '')}".lower()
            for item in organic
        ]

        other_cities = [c for c in OTHER_CITY_INDICATORS if c not in self._area_indicators()]
        if any(city in text for text in texts for city in other_cities):
            return AddressCheck(address, False, None, "high", not_in_area)

        if any(indicator in text for text in texts for indicator in self._area_indicators()):
            return AddressCheck(address, True, f"{self.city}, {self.country}", "high")

        return AddressCheck(address, False, None, "medium", not_in_area)

    # ============================================
    # Supplier lookups
    # ============================================

    async def search_trustpilot(self, supplier_name: str) -> Dict[str, Any]:
        return await self.search(f"{supplier_name} trustpilot {self.city} {self.country}")

    async def search_tripadvisor(self, supplier_name: str) -> Dict[str, Any]:
        return await self.search(f"{supplier_name} tripadvisor {self.city} {self.country}")

    async def search_reviews(self, supplier_name: str) -> Dict[str, Any]:
        return await self.search(f"{supplier_name} reviews rating {self.city} {self.country}")

    async def search_cashback(self, supplier_name: str) -> Dict[str, Any]:
        return await self.search(f"{supplier_name} cashback")

    async def search_coupons(self, supplier_name: str) -> Dict[str, Any]:
        return await self.search(f"{supplier_name} coupon discount")

    async def find_website(self, supplier_name: str) -> Dict[str, Any]:
        """Best guess at a supplier's official website"""
        results = await self.search(f"{supplier_name} official website {self.city} {self.country}")
        organic = results.get("organic") or []

        compact_name = supplier_name.lower().replace(" ", "")
        for item in organic:
            link = item.get("link") or ""
            title = (item.get("title") or "").lower()
            if link and (compact_name in link.lower() or "official" in title or "website" in title):
                return {"supplierName": supplier_name, "websiteUrl": link, "confidence": "high", "found": True}

        if organic and organic[0].get("link"):
            return {"supplierName": supplier_name, "websiteUrl": organic[0]["link"], "confidence": "medium", "found": True}

        return {"supplierName": supplier_name, "websiteUrl": None, "confidence": "low", "found": False}


# ============================================
# Global Instance
# ============================================

search_client = SearchClient()

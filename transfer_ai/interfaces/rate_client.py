# interfaces/rate_client.py
"""
Rates marketplace client
Queries the rates proxy for a complete itinerary and parses the
marketplace payload into immutable RateOffer records.
"""

import re
from dataclasses import dataclass
from datetime import date as date_cls, datetime, timedelta
from typing import Optional, Dict, Any, List, Union

import httpx
from loguru import logger

from ..config import settings
from ..errors import UpstreamError, NoOffersFound, InvalidItineraryError
from ..schemas.transfer_schemas import ItineraryDraft, VehicleCategory
from .locations import get_location_id, get_location_type, normalize_location


LANGUAGE_MAP = {
    "en": "en-gb",
    "ru": "ru-ru",
    "de": "de-de",
    "fr": "fr-fr",
    "zh": "zh-cn",
}

DEFAULT_TIME = "12:00"
DEFAULT_DURATION_MINUTES = 25
DEFAULT_DISTANCE_KM = 18.0

TODAY_WORDS = {"today", "сегодня", "heute", "aujourd'hui"}
TOMORROW_WORDS = {"tomorrow", "завтра", "morgen", "demain"}


@dataclass(frozen=True)
class RateOffer:
    """One priced transfer option from the marketplace"""
    supplier_id: str
    supplier_name: str
    supplier_category: str
    vehicle_description: str
    model_description: str
    car_example: str
    max_passengers: int
    bags: int
    price: float
    original_price: float
    currency: str
    duration_minutes: int
    driving_distance_km: float
    meet_and_greet: bool
    is_shared: bool
    is_premium: bool
    vehicle_category: str
    booking_link: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "supplierId": self.supplier_id,
            "supplierName": self.supplier_name,
            "supplierCategory": self.supplier_category,
            "vehicleDescription": self.vehicle_description,
            "modelDescription": self.model_description,
            "carExample": self.car_example,
            "maxPassengers": self.max_passengers,
            "bags": self.bags,
            "price": self.price,
            "originalPrice": self.original_price,
            "currency": self.currency,
            "durationMinutes": self.duration_minutes,
            "drivingDistanceKm": self.driving_distance_km,
            "meetAndGreet": self.meet_and_greet,
            "isShared": self.is_shared,
            "isPremium": self.is_premium,
            "vehicleCategory": self.vehicle_category,
            "bookingLink": self.booking_link,
        }


# ============================================
# Helpers
# ============================================

def map_language(language: Optional[str]) -> str:
    """Map a short UI language code to the marketplace locale"""
    return LANGUAGE_MAP.get((language or "en").lower()[:2], "en-gb")


def normalize_date(value: Optional[str], today: Optional[date_cls] = None) -> str:
    """
    Normalise a draft date to YYYY-MM-DD.
    Missing → today. Relative words (today/tomorrow) are resolved.
    """
    today = today or date_cls.today()

    if value is None or not str(value).strip():
        return today.isoformat()

    text = str(value).strip().lower()
    if text in TODAY_WORDS:
        return today.isoformat()
    if text in TOMORROW_WORDS:
        return (today + timedelta(days=1)).isoformat()

    for fmt in ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue

    raise InvalidItineraryError(f"Invalid transfer date: {value!r}")


def normalize_time(value: Optional[Union[str, float, int]]) -> str:
    """Normalise a draft time to HH:MM (missing → 12:00)"""
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_TIME

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        hours = int(value)
        minutes = int(round((value - hours) * 60))
        if 0 <= hours < 24 and 0 <= minutes < 60:
            return f"{hours:02d}:{minutes:02d}"
        raise InvalidItineraryError(f"Invalid transfer time: {value!r}")

    match = re.fullmatch(r"(\d{1,2})[:.](\d{2})(?::\d{2})?", str(value).strip())
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours < 24 and minutes < 60:
            return f"{hours:02d}:{minutes:02d}"

    raise InvalidItineraryError(f"Invalid transfer time: {value!r}")


def format_pickup_datetime(date_value: Optional[str], time_value: Optional[str],
                           today: Optional[date_cls] = None) -> str:
    return f"{normalize_date(date_value, today)}T{normalize_time(time_value)}:00"


def get_vehicle_category(max_passengers: int, description: str) -> str:
    """Description keywords first, then seat capacity"""
    desc = (description or "").lower()

    # "minibus" and "миниавтобус" match the bus keywords
    if any(word in desc for word in ("bus", "автобус", "coach")):
        return VehicleCategory.BUS.value
    if any(word in desc for word in ("minivan", "минивэн", "van")):
        return VehicleCategory.MINIVAN.value

    if max_passengers >= 9:
        return VehicleCategory.BUS.value
    if 6 <= max_passengers <= 8:
        return VehicleCategory.MINIVAN.value
    return VehicleCategory.CAR.value


def _first(option: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First truthy value among keys"""
    for key in keys:
        value = option.get(key)
        if value:
            return value
    return default


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, dict):
        value = value.get("amount", value.get("value"))
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _first_number(option: Dict[str, Any], *keys: str, default: float) -> float:
    for key in keys:
        number = _as_number(option.get(key))
        if number:
            return number
    return default


def extract_results(payload: Any) -> List[Dict[str, Any]]:
    """
    Locate the offer list inside a marketplace payload.
    Supported: journeys[0].legs[0].results, transfers, options, results, bare list.
    """
    if isinstance(payload, list):
        return payload

    if not isinstance(payload, dict):
        raise UpstreamError(f"Unrecognised rates payload type: {type(payload).__name__}")

    if isinstance(payload.get("journeys"), list):
        journeys = payload["journeys"]
        legs = journeys[0].get("legs") if journeys and isinstance(journeys[0], dict) else None
        if isinstance(legs, list) and legs and isinstance(legs[0], dict):
            return legs[0].get("results") or []
        return []

    for key in ("transfers", "options", "results"):
        if isinstance(payload.get(key), list):
            return payload[key]

    raise UpstreamError(f"Unrecognised rates payload shape: keys={sorted(payload.keys())}")


def parse_offer(option: Dict[str, Any], index: int, passengers: int, luggage: int) -> RateOffer:
    """Build a RateOffer from one marketplace result with field fallbacks"""
    car_details = option.get("carDetails") or {}

    description = (
        car_details.get("description") or option.get("description")
        or option.get("vehicleType") or option.get("carType") or ""
    )
    model_description = (
        car_details.get("modelDescription") or car_details.get("model")
        or option.get("model") or option.get("vehicleModel") or ""
    )
    base_model = (
        car_details.get("model") or option.get("model") or option.get("vehicleModel")
        or model_description.split(" or similar")[0]
    )
    car_example = f"{base_model} or similar" if base_model else ""

    vehicle_type = option.get("vehicleType")
    if vehicle_type and vehicle_type not in description:
        description = f"{vehicle_type} - {description}"

    price = _first_number(option, "price", "totalPrice", "amount", "fare", default=0.0)
    original_price = _first_number(option, "originalPrice", "originalAmount", default=price)

    max_passengers = int(_first_number(option, "maxPassenger", "passengers", "capacity", default=passengers))
    bags = int(_first_number(option, "bags", "luggage", "baggage", default=luggage))
    duration = int(_first_number(option, "duration", "travelTime", default=DEFAULT_DURATION_MINUTES))
    distance = _first_number(option, "drivingDistance", "distance", default=DEFAULT_DISTANCE_KM)

    supplier_name = _first(option, "supplierName", "name", "provider", "company", default="Unknown Supplier")
    supplier_category = _first(option, "supplierCategory", "category", "serviceLevel", default="")

    is_premium = bool(
        option.get("isPremium") or option.get("premium")
        or "premium" in str(supplier_category).lower()
    )

    supplier_id = _first(option, "supplierID", "supplierId", "id")
    supplier_id = str(supplier_id) if supplier_id else f"real-{index}"

    return RateOffer(
        supplier_id=supplier_id,
        supplier_name=str(supplier_name),
        supplier_category=str(supplier_category),
        vehicle_description=description,
        model_description=model_description,
        car_example=car_example,
        max_passengers=max_passengers,
        bags=bags,
        price=price,
        original_price=original_price,
        currency=option.get("currency") or "EUR",
        duration_minutes=duration,
        driving_distance_km=distance,
        meet_and_greet=bool(option.get("meetAndGreet") or option.get("meetAndGreetService")),
        is_shared=bool(option.get("isShared") or option.get("shared")),
        is_premium=is_premium,
        vehicle_category=get_vehicle_category(max_passengers, description),
        booking_link=_first(option, "link", "bookingLink", "bookingUrl",
                            default=f"https://example.com/book/{option.get('supplierID') or index}"),
    )


# ============================================
# Client
# ============================================

class RateQuoteClient:
    """
    Async client for the rates proxy.
    One GET per search, no automatic retry.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url or settings.RATES_PROXY_URL
        self.timeout = timeout if timeout is not None else settings.RATES_TIMEOUT_SECONDS
        self._transport = transport

    def build_query(self, itinerary: ItineraryDraft, language: Optional[str] = "en",
                    today: Optional[date_cls] = None) -> Dict[str, str]:
        """Translate a draft into proxy query parameters"""
        origin = normalize_location(itinerary.from_ or "")
        destination = normalize_location(itinerary.to or "")

        if not origin or not destination:
            raise InvalidItineraryError("Departure and destination locations are required")

        passengers = itinerary.passengers if itinerary.passengers is not None else 1

        return {
            "affiliate": "booking-taxi",
            "currency": "EUR",
            "pickup": get_location_id(origin),
            "dropoff": get_location_id(destination),
            "pickupEstablishment": origin,
            "dropoffEstablishment": destination,
            "pickupType": get_location_type(origin),
            "dropoffType": get_location_type(destination),
            "pickupDateTime": format_pickup_datetime(itinerary.date, itinerary.time, today),
            "passenger": str(passengers),
            "format": "envelope",
            "language": map_language(language),
        }

    def parse_offers(self, payload: Any, itinerary: ItineraryDraft) -> List[RateOffer]:
        results = extract_results(payload)

        passengers = itinerary.passengers if itinerary.passengers is not None else 1
        luggage = itinerary.luggage if itinerary.luggage is not None else 1

        offers = [
            parse_offer(option, index, passengers, luggage)
            for index, option in enumerate(results)
            if isinstance(option, dict)
        ]

        if not offers:
            raise NoOffersFound("No transfer options available for this route")

        return offers

    async def search(self, itinerary: Union[ItineraryDraft, Dict[str, Any]],
                     language: Optional[str] = "en") -> List[RateOffer]:
        """
        Fetch and parse offers for a complete itinerary.

        Raises:
            InvalidItineraryError: locations or date/time unusable
            UpstreamError: transport failure, non-2xx or malformed payload
            NoOffersFound: payload parsed to zero offers
        """
        if isinstance(itinerary, dict):
            itinerary = ItineraryDraft().merge(itinerary)

        params = self.build_query(itinerary, language)
        logger.info(
            f"Rates search: {params['pickupEstablishment']} -> {params['dropoffEstablishment']}, "
            f"at={params['pickupDateTime']}, pax={params['passenger']}, lang={params['language']}"
        )

        started = datetime.now()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    self.base_url,
                    params=params,
                    headers={"Content-Type": "application/json", "User-Agent": settings.BOOKING_USER_AGENT}
                )
        except httpx.TimeoutException as e:
            logger.error(f"Rates proxy timeout after {self.timeout}s: {e}")
            raise UpstreamError(f"Rates proxy timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.error(f"Rates proxy transport error: {e}")
            raise UpstreamError(f"Rates proxy request failed: {e}") from e

        elapsed_ms = int((datetime.now() - started).total_seconds() * 1000)
        logger.info(f"Rates proxy responded {response.status_code} in {elapsed_ms}ms")

        if not response.is_success:
            raise UpstreamError(
                f"Rates proxy error: {response.status_code}. Details: {response.text[:500]}",
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError(f"Rates proxy returned invalid JSON: {e}") from e

        if not isinstance(body, dict) or not body.get("success") or not body.get("data"):
            error = body.get("error") if isinstance(body, dict) else None
            raise UpstreamError(f"Rates proxy error: {error or 'No data received'}")

        offers = self.parse_offers(body["data"], itinerary)
        logger.info(f"Parsed {len(offers)} transfer offers")
        return offers


# ============================================
# Global Instance
# ============================================

rate_client = RateQuoteClient()

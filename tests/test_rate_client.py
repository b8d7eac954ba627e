"""Rates proxy client: query building, payload shapes, failures."""

from __future__ import annotations

import asyncio
from datetime import date

import httpx
import pytest

from transfer_ai.errors import InvalidItineraryError, NoOffersFound, UpstreamError
from transfer_ai.interfaces.locations import VIENNA_AIRPORT_ID
from transfer_ai.interfaces.rate_client import (
    RateQuoteClient,
    extract_results,
    format_pickup_datetime,
    get_vehicle_category,
    normalize_date,
    normalize_time,
)
from transfer_ai.schemas.transfer_schemas import ItineraryDraft

TODAY = date(2025, 6, 1)

ITINERARY = ItineraryDraft().merge({
    "from": "Vienna Airport",
    "to": "Hotel Sacher",
    "passengers": 2,
    "luggage": 2,
    "date": "2025-06-10",
    "time": "14:30",
})

RESULT = {
    "supplierName": "Vienna Cabs",
    "supplierID": 42,
    "price": {"amount": 39.5},
    "maxPassenger": 3,
    "bags": 2,
    "carDetails": {"description": "Standard Sedan", "model": "Skoda Octavia"},
    "link": "https://book.example/42",
}


def _client(handler) -> RateQuoteClient:
    return RateQuoteClient(base_url="http://proxy.test/api/transfers", timeout=5,
                           transport=httpx.MockTransport(handler))


def test_build_query_maps_locations_and_datetime():
    params = RateQuoteClient(base_url="http://proxy.test").build_query(ITINERARY, "ru", today=TODAY)

    assert params["pickup"] == VIENNA_AIRPORT_ID
    assert params["pickupType"] == "airport"
    assert params["dropoff"] == "Hotel Sacher"
    assert params["dropoffType"] == "establishment"
    assert params["pickupDateTime"] == "2025-06-10T14:30:00"
    assert params["passenger"] == "2"
    assert params["language"] == "ru-ru"


def test_build_query_requires_both_locations():
    with pytest.raises(InvalidItineraryError):
        RateQuoteClient().build_query(ItineraryDraft().merge({"from": "Vienna Airport"}))


def test_date_and_time_defaults_and_formats():
    assert normalize_date(None, TODAY) == "2025-06-01"
    assert normalize_date("tomorrow", TODAY) == "2025-06-02"
    assert normalize_date("10.06.2025", TODAY) == "2025-06-10"
    assert normalize_time(None) == "12:00"
    assert normalize_time("9.05") == "09:05"
    assert format_pickup_datetime(None, None, TODAY) == "2025-06-01T12:00:00"


@pytest.mark.parametrize("bad_date", ["next week", "2025-13-40"])
def test_malformed_date_is_rejected(bad_date):
    with pytest.raises(InvalidItineraryError):
        normalize_date(bad_date, TODAY)


def test_malformed_time_is_rejected():
    with pytest.raises(InvalidItineraryError):
        normalize_time("25:99")


@pytest.mark.parametrize(
    "payload",
    [
        {"journeys": [{"legs": [{"results": [RESULT]}]}]},
        {"transfers": [RESULT]},
        {"options": [RESULT]},
        {"results": [RESULT]},
        [RESULT],
    ],
)
def test_supported_payload_shapes(payload):
    assert extract_results(payload) == [RESULT]


def test_empty_journeys_is_empty_and_unknown_shape_is_upstream_error():
    assert extract_results({"journeys": []}) == []
    with pytest.raises(UpstreamError):
        extract_results({"unexpected": True})


@pytest.mark.parametrize(
    "capacity, description, expected",
    [
        (3, "Standard Sedan", "car"),
        (7, "People carrier", "minivan"),
        (4, "Minibus", "bus"),
        (8, "Миниавтобус Mercedes Sprinter", "bus"),
        (4, "Mercedes Minivan", "minivan"),
        (4, "Executive Coach", "bus"),
        (16, "Large vehicle", "bus"),
        (3, "Van", "minivan"),
    ],
)
def test_vehicle_category(capacity, description, expected):
    assert get_vehicle_category(capacity, description) == expected


def test_search_parses_offers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"success": True, "data": {"results": [RESULT]}})

    offers = asyncio.run(_client(handler).search(ITINERARY, "en"))

    assert seen["params"]["pickup"] == VIENNA_AIRPORT_ID
    assert len(offers) == 1
    offer = offers[0]
    assert offer.supplier_name == "Vienna Cabs"
    assert offer.supplier_id == "42"
    assert offer.price == 39.5
    assert offer.car_example == "Skoda Octavia or similar"
    assert offer.vehicle_category == "car"
    assert offer.to_dict()["bookingLink"] == "https://book.example/42"


def test_search_with_zero_results_raises_no_offers():
    def handler(request):
        return httpx.Response(200, json={"success": True, "data": {"journeys": []}})

    with pytest.raises(NoOffersFound):
        asyncio.run(_client(handler).search(ITINERARY))


def test_search_non_2xx_is_upstream_error():
    def handler(request):
        return httpx.Response(503, text="unavailable")

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(_client(handler).search(ITINERARY))
    assert exc_info.value.status_code == 503


def test_search_timeout_is_upstream_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamError):
        asyncio.run(_client(handler).search(ITINERARY))


def test_search_unsuccessful_body_is_upstream_error():
    def handler(request):
        return httpx.Response(200, json={"success": False, "error": "Internal server error"})

    with pytest.raises(UpstreamError):
        asyncio.run(_client(handler).search(ITINERARY))

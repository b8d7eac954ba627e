"""Pytest fixtures for offline concierge and proxy tests."""

from __future__ import annotations

import json
import os
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

# No external services: in-memory stores, no LLM, no search key.
os.environ["REDIS_URL"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["SERPER_API_KEY"] = ""

from transfer_ai.interfaces.rate_client import RateOffer  # noqa: E402


def make_tool_message(content: Optional[str] = None, calls: Optional[List[tuple]] = None):
    """Stand-in for an OpenAI chat message carrying tool calls."""
    tool_calls = [
        SimpleNamespace(function=SimpleNamespace(name=name, arguments=json.dumps(args)))
        for name, args in (calls or [])
    ]
    return SimpleNamespace(content=content, tool_calls=tool_calls or None, function_call=None)


class StubLLM:
    """Records prompts and replays canned chat messages."""

    def __init__(self, messages=None, configured: bool = True, error: Optional[Exception] = None):
        self.messages = list(messages or [])
        self.configured = configured
        self.error = error
        self.chat_calls: List[List[Dict[str, Any]]] = []
        self.complete_calls: List[tuple] = []

    async def chat(self, messages, tools=None, temperature=0.7, max_tokens=500, response_format=None):
        self.chat_calls.append(messages)
        if self.error:
            raise self.error
        return self.messages.pop(0)

    async def complete(self, system_prompt, user_prompt, temperature=0.7, max_tokens=500):
        self.complete_calls.append((system_prompt, user_prompt))
        if self.error:
            raise self.error
        return "Narrative"

    async def complete_json(self, system_prompt, user_prompt, max_tokens=800):
        if self.error:
            raise self.error
        return {}


class StubSearch:
    """Counts lookups per kind; returns canned organic results."""

    def __init__(self, results: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.results = results or {}
        self.calls: List[tuple] = []
        self.configured = True

    async def _lookup(self, kind: str, name: str) -> Dict[str, Any]:
        self.calls.append((kind, name))
        return {"organic": list(self.results.get(kind, []))}

    async def search_trustpilot(self, name):
        return await self._lookup("trustpilot", name)

    async def search_tripadvisor(self, name):
        return await self._lookup("tripadvisor", name)

    async def search_reviews(self, name):
        return await self._lookup("general", name)

    async def search_cashback(self, name):
        return await self._lookup("cashback", name)

    async def search_coupons(self, name):
        return await self._lookup("coupon", name)

    async def find_website(self, name):
        self.calls.append(("website", name))
        return {"supplierName": name, "websiteUrl": None, "confidence": "low", "found": False}

    def count(self, kind: str) -> int:
        return sum(1 for call_kind, _ in self.calls if call_kind == kind)


def make_offer(supplier: str = "Vienna Cabs", price: float = 45.0, **overrides) -> RateOffer:
    values = dict(
        supplier_id=f"{supplier}-{price}",
        supplier_name=supplier,
        supplier_category="Standard",
        vehicle_description="Standard Sedan",
        model_description="Skoda Octavia or similar",
        car_example="Skoda Octavia or similar",
        max_passengers=3,
        bags=2,
        price=price,
        original_price=price,
        currency="EUR",
        duration_minutes=25,
        driving_distance_km=18.0,
        meet_and_greet=False,
        is_shared=False,
        is_premium=False,
        vehicle_category="car",
        booking_link="https://example.com/book/1",
    )
    values.update(overrides)
    return RateOffer(**values)


@pytest.fixture
def stub_search():
    return StubSearch()


@pytest.fixture
def offer_factory():
    return make_offer

"""Supplier enrichment and price ranking."""

from __future__ import annotations

import asyncio

from conftest import StubLLM, StubSearch, make_offer

from transfer_ai.agents.enrichment import ProviderEnrichmentCache, SupplierEnrichment, unique_suppliers
from transfer_ai.algorithms.offer_ranking import group_by_supplier, rank_offers
from transfer_ai.errors import SearchProviderError


def _cache(search, llm=None) -> ProviderEnrichmentCache:
    return ProviderEnrichmentCache(search=search, llm=llm or StubLLM(configured=False),
                                   city="Vienna", country="Austria")


def test_unique_suppliers_preserves_order_and_drops_blanks():
    assert unique_suppliers(["B", "A", "", None, "B", "  ", "C"]) == ["B", "A", "C"]


def test_n_offers_from_k_suppliers_trigger_k_lookup_batches():
    search = StubSearch()
    names = ["Vienna Cabs", "AirportTaxi", "Vienna Cabs", "Blacklane", "AirportTaxi", "Vienna Cabs"]

    result = asyncio.run(_cache(search).enrich(names))

    assert list(result) == ["Vienna Cabs", "AirportTaxi", "Blacklane"]
    for kind in ("trustpilot", "tripadvisor", "general", "cashback", "coupon", "website"):
        assert search.count(kind) == 3


def test_heuristic_rating_prefers_most_reviews():
    search = StubSearch({
        "trustpilot": [{"title": "Vienna Cabs Reviews", "link": "https://www.trustpilot.com/review/vc",
                        "snippet": "Rated 4.2 / 5 based on 1,250 reviews"}],
        "tripadvisor": [{"title": "Vienna Cabs", "link": "https://www.tripadvisor.com/vc",
                         "rating": 4.8, "ratingCount": 35}],
    })

    enrichment = asyncio.run(_cache(search).enrich(["Vienna Cabs"]))["Vienna Cabs"]

    assert enrichment.found is True
    assert enrichment.rating_source == "Trustpilot"
    assert enrichment.rating_score == 4.2
    assert enrichment.rating_count == 1250
    assert "based on 1250 reviews" in enrichment.rating_text()


def test_heuristic_promotions_from_snippets():
    search = StubSearch({
        "cashback": [{"title": "Blacklane cashback", "snippet": "Earn 5% cashback on rides"}],
        "coupon": [{"title": "Blacklane coupons", "snippet": "Get 10% off with code RIDE10NOW"}],
    })

    enrichment = asyncio.run(_cache(search).enrich(["Blacklane"]))["Blacklane"]

    assert enrichment.cashback_available is True
    assert enrichment.cashback_percentage == "5%"
    assert enrichment.coupons_available is True
    assert enrichment.coupons_discount == "10% off"
    assert enrichment.coupon_codes == ["RIDE10NOW"]


def test_search_provider_failure_degrades_to_not_found():
    class FailingSearch(StubSearch):
        async def _lookup(self, kind, name):
            self.calls.append((kind, name))
            raise SearchProviderError("quota")

    enrichment = asyncio.run(_cache(FailingSearch()).enrich(["Vienna Cabs"]))["Vienna Cabs"]

    assert enrichment.found is False
    assert enrichment.rating_text() == "Rating: Not found"


def test_unexpected_failure_only_affects_that_supplier():
    class BrokenForOne(StubSearch):
        async def _lookup(self, kind, name):
            if name == "Broken":
                raise RuntimeError("boom")
            return await super()._lookup(kind, name)

    search = BrokenForOne({"general": [{"title": "Good Cabs", "rating": 4.5, "ratingCount": 10}]})
    result = asyncio.run(_cache(search).enrich(["Broken", "Good Cabs"]))

    assert result["Broken"] == SupplierEnrichment.not_found("Broken")
    assert result["Good Cabs"].rating_score == 4.5


def test_rank_offers_sorts_by_price_with_contiguous_ranks():
    offers = [make_offer("A", 45), make_offer("B", 35), make_offer("C", 65)]

    ranked = rank_offers(offers, {"B": SupplierEnrichment("B", found=True, rating_score=4.0)})

    assert [r.price for r in ranked] == [35, 45, 65]
    assert [r.rank for r in ranked] == [1, 2, 3]
    assert ranked[0].enrichment.rating_score == 4.0
    assert ranked[1].enrichment == SupplierEnrichment.not_found("A")


def test_rank_offers_is_stable_for_equal_prices():
    offers = [make_offer("First", 40, supplier_id="1"), make_offer("Second", 40, supplier_id="2")]
    ranked = rank_offers(offers, {})
    assert [r.supplier_name for r in ranked] == ["First", "Second"]


def test_group_by_supplier_follows_first_appearance():
    offers = [make_offer("A", 50), make_offer("B", 30), make_offer("A", 20)]
    groups = group_by_supplier(rank_offers(offers, {}))
    assert list(groups) == ["A", "B"]
    assert [r.price for r in groups["A"]] == [20, 50]

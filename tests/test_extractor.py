"""Itinerary draft rules and the conversation extractor."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import httpx

from conftest import StubLLM, make_tool_message

from transfer_ai.errors import LLMUnavailableError
from transfer_ai.interfaces.search_client import AddressCheck, SearchClient
from transfer_ai.llm.extractor import (
    ADDRESS_FUNCTION,
    COMPLETE_REPLY,
    ERROR_REPLY,
    EXTRACT_FUNCTION,
    COLLECTING_REPLY,
    CompositeCallParser,
    ConversationExtractor,
    FunctionCall,
    FunctionCallParser,
    TextCallParser,
)
from transfer_ai.schemas.transfer_schemas import DraftStatus, ItineraryDraft


PRIOR = {"from": "Vienna Airport", "to": "Stephansplatz", "date": "2025-06-01", "time": "14:30"}


class StubAddressSearch:
    def __init__(self, check: AddressCheck):
        self.check = check
        self.addresses = []

    async def check_address(self, address):
        self.addresses.append(address)
        return self.check


def test_draft_complete_only_with_all_required_fields():
    draft = ItineraryDraft().merge(PRIOR)
    assert draft.status == DraftStatus.COLLECTING
    assert not draft.is_complete

    draft = draft.merge({"passengers": 2, "luggage": 0})
    assert draft.is_complete
    assert draft.status == DraftStatus.COMPLETE


def test_draft_complete_with_time_but_no_date():
    draft = ItineraryDraft().merge({"from": "VIE", "to": "Hofburg", "time": "09:00", "passengers": 1, "luggage": 1})
    assert draft.is_complete


def test_merge_is_idempotent_and_last_write_wins():
    updates = {"from": "Vienna Airport", "passengers": "3"}
    once = ItineraryDraft().merge(updates)
    twice = once.merge(updates)
    assert once == twice
    assert twice.passengers == 3

    changed = twice.merge({"from": "Westbahnhof", "to": None})
    assert changed.from_ == "Westbahnhof"
    assert changed.passengers == 3
    assert changed.to is None


def test_merge_ignores_status_and_unknown_keys():
    draft = ItineraryDraft().merge({"from": "A", "status": "complete", "flight": "OS123"})
    assert draft.status == DraftStatus.COLLECTING
    assert "flight" not in draft.to_dict()
    assert draft.to_dict()["from"] == "A"


def test_text_call_parser_recovers_fields():
    message = SimpleNamespace(
        content='Sure! [Call extract_transfer_data with: from="Vienna Airport", to="Hotel Sacher", '
                'passengers=2, luggage=3, date="2025-07-10", status="complete"] Anything else?',
        tool_calls=None,
    )
    calls = CompositeCallParser().parse(message)

    assert len(calls) == 1
    assert calls[0].name == EXTRACT_FUNCTION
    assert calls[0].arguments == {
        "from": "Vienna Airport",
        "to": "Hotel Sacher",
        "passengers": 2,
        "luggage": 3,
        "date": "2025-07-10",
        "status": "complete",
    }
    assert TextCallParser().clean_reply(message.content) == "Sure!  Anything else?"


def test_pax_and_bags_completes_prior_draft():
    llm = StubLLM([make_tool_message(calls=[(EXTRACT_FUNCTION, {"passengers": 2, "luggage": 2})])])
    extractor = ConversationExtractor(llm=llm, search=StubAddressSearch(None), city="Vienna")

    result = asyncio.run(extractor.extract("2 pax and 2 bags", [], ItineraryDraft().merge(PRIOR), "en"))

    assert result.draft.is_complete
    assert result.needs_clarification is False
    assert result.reply == COMPLETE_REPLY
    assert result.extracted_data()["isComplete"] is True
    assert result.extracted_data()["from"] == "Vienna Airport"


def test_incomplete_turn_keeps_collecting_with_model_reply():
    llm = StubLLM([make_tool_message("How many passengers?", [(EXTRACT_FUNCTION, {"from": "Vienna Airport"})])])
    extractor = ConversationExtractor(llm=llm, search=StubAddressSearch(None))

    result = asyncio.run(extractor.extract("From the airport", [], None, "en"))

    assert result.needs_clarification is True
    assert result.reply == "How many passengers?"
    assert result.draft.from_ == "Vienna Airport"


def test_history_is_trimmed_to_context_window():
    llm = StubLLM([make_tool_message("ok")])
    extractor = ConversationExtractor(llm=llm, search=StubAddressSearch(None), context_turns=2)
    history = [{"role": "user", "content": f"turn {i}"} for i in range(5)]

    asyncio.run(extractor.extract("hello", history, None, "en"))

    sent = llm.chat_calls[0]
    assert sent[0]["role"] == "system"
    assert [m["content"] for m in sent[1:]] == ["turn 3", "turn 4", "hello"]


def test_address_outside_area_asks_again_and_keeps_draft():
    check = AddressCheck(
        address="Marienplatz Munich",
        in_service_area=False,
        location=None,
        confidence="high",
        clarification="This location is not in Vienna. Please provide a Vienna address or landmark.",
    )
    search = StubAddressSearch(check)
    llm = StubLLM([make_tool_message(calls=[(ADDRESS_FUNCTION, {"address": "Marienplatz Munich"})])])
    prior = ItineraryDraft().merge({"from": "Vienna Airport"})

    result = asyncio.run(ConversationExtractor(llm=llm, search=search, city="Vienna").extract(
        "to Marienplatz Munich", [], prior, "en"))

    assert search.addresses == ["Marienplatz Munich"]
    assert result.needs_clarification is True
    assert result.draft == prior
    assert "not in Vienna" in result.reply


def test_llm_failure_returns_apology_and_prior_draft():
    prior = ItineraryDraft().merge({"from": "Vienna Airport"})
    llm = StubLLM(error=LLMUnavailableError("down"))

    result = asyncio.run(ConversationExtractor(llm=llm, search=StubAddressSearch(None)).extract("hi", [], prior))

    assert result.reply == ERROR_REPLY
    assert result.draft == prior
    assert result.needs_clarification is True


def test_address_inside_area_confirms_and_asks_for_the_rest():
    check = AddressCheck(address="Hotel Sacher", in_service_area=True,
                         location="Vienna, Austria", confidence="high")
    search = StubAddressSearch(check)
    llm = StubLLM([make_tool_message(calls=[(ADDRESS_FUNCTION, {"address": "Hotel Sacher"})])])
    prior = ItineraryDraft().merge({"from": "Vienna Airport"})

    result = asyncio.run(ConversationExtractor(llm=llm, search=search, city="Vienna").extract(
        "to Hotel Sacher", [], prior, "en"))

    assert result.needs_clarification is True
    assert 'confirmed that "Hotel Sacher" is in Vienna' in result.reply
    assert "provide the rest" in result.reply
    assert result.draft == prior
    assert not result.draft.is_complete


def test_text_call_in_reply_is_merged_and_stripped():
    message = SimpleNamespace(
        content='Got it. [Call extract_transfer_data with: from="Vienna Airport", to="Hotel Sacher", '
                'passengers=2, luggage=1, date="2025-07-10", time="10:00", status="complete"]',
        tool_calls=None,
        function_call=None,
    )
    extractor = ConversationExtractor(llm=StubLLM([message]), search=StubAddressSearch(None))

    result = asyncio.run(extractor.extract("Airport to Hotel Sacher, 2 people, 1 bag", [], None, "en"))

    assert result.reply == "Got it."
    assert result.needs_clarification is False
    assert result.draft.is_complete
    assert result.draft.to == "Hotel Sacher"
    assert result.draft.time == "10:00"


def test_address_check_with_non_json_search_reply_does_not_raise():
    search = SearchClient(api_key="test-key", api_url="https://search.test/search",
                          city="Vienna", country="Austria",
                          transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>oops</html>")))
    llm = StubLLM([make_tool_message(calls=[(ADDRESS_FUNCTION, {"address": "Hotel Sacher"})])])
    prior = ItineraryDraft().merge({"from": "Vienna Airport"})

    result = asyncio.run(ConversationExtractor(llm=llm, search=search, city="Vienna").extract(
        "to Hotel Sacher", [], prior, "en"))

    assert result.needs_clarification is True
    assert result.draft == prior
    assert "Hotel Sacher" in result.reply


def test_tool_call_with_list_arguments_is_ignored():
    llm = StubLLM([make_tool_message(calls=[(EXTRACT_FUNCTION, ["Vienna", "Airport"])])])
    prior = ItineraryDraft().merge({"from": "Vienna Airport"})

    result = asyncio.run(ConversationExtractor(llm=llm, search=StubAddressSearch(None)).extract(
        "Vienna Airport", [], prior, "en"))

    assert result.reply == COLLECTING_REPLY
    assert result.needs_clarification is True
    assert result.draft == prior


class ListArgumentsParser(FunctionCallParser):
    def parse(self, message):
        return [FunctionCall(name=EXTRACT_FUNCTION, arguments=["Vienna", "Airport"])]


def test_merge_failure_returns_apology_and_prior_draft():
    prior = ItineraryDraft().merge({"from": "Vienna Airport"})
    extractor = ConversationExtractor(llm=StubLLM([make_tool_message("ok")]),
                                      search=StubAddressSearch(None), parser=ListArgumentsParser())

    result = asyncio.run(extractor.extract("Vienna Airport", [], prior, "en"))

    assert result.reply == ERROR_REPLY
    assert result.needs_clarification is True
    assert result.draft == prior

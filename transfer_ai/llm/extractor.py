# llm/extractor.py
"""
Conversation Extractor
Turns chat messages into a structured transfer itinerary:
- from / to locations (service area only)
- passengers and luggage
- date and time

The LLM is asked to call `extract_transfer_data` (or
`search_address_in_google` for addresses that may be outside the
service area). Models that answer with a textual pseudo-call are
handled by a regex fallback behind the same parser interface.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from loguru import logger

from ..config import settings
from ..errors import LLMUnavailableError
from ..schemas.transfer_schemas import ItineraryDraft
from ..interfaces.search_client import SearchClient, search_client as default_search_client
from ..utils.language import resolve_language
from .client import LLMClient, llm_client as default_llm_client
from .prompts import EXTRACTION_PROMPT, EXTRACTION_TOOLS, time_context


EXTRACT_FUNCTION = "extract_transfer_data"
ADDRESS_FUNCTION = "search_address_in_google"

COLLECTING_REPLY = "I'm collecting your transfer details. Please provide the missing information."
COMPLETE_REPLY = "Great! I have all the details I need. Let me search for transfer options for you."
ERROR_REPLY = "Sorry, I encountered an error processing your request. Please try again."

TEXT_CALL_PATTERN = re.compile(r"\[Call extract_transfer_data with: ([^\]]+)\]")
TEXT_FIELD_PATTERNS = {
    "from": (re.compile(r'from="([^"]+)"'), str),
    "to": (re.compile(r'to="([^"]+)"'), str),
    "passengers": (re.compile(r"passengers=(\d+)"), int),
    "luggage": (re.compile(r"luggage=(\d+)"), int),
    "date": (re.compile(r'date="([^"]+)"'), str),
    "time": (re.compile(r'time="([^"]+)"'), str),
    "status": (re.compile(r'status="([^"]+)"'), str),
}


@dataclass
class FunctionCall:
    """A function call requested by the model"""
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ExtractionResult:
    """Outcome of one extraction turn"""
    reply: str
    draft: ItineraryDraft
    needs_clarification: bool
    language: str = "en"

    def extracted_data(self) -> Dict[str, Any]:
        data = self.draft.to_dict()
        data["language"] = self.language
        data["isComplete"] = self.draft.is_complete
        return data


# ============================================
# Function call parsers
# ============================================

class FunctionCallParser:
    """Reads function calls out of an LLM message"""

    def parse(self, message) -> List[FunctionCall]:
        raise NotImplementedError

    def clean_reply(self, content: Optional[str]) -> str:
        return (content or "").strip()


class ToolCallParser(FunctionCallParser):
    """Structured `tool_calls` (and legacy `function_call`) on the message"""

    def parse(self, message) -> List[FunctionCall]:
        raw_calls = []
        for tool_call in getattr(message, "tool_calls", None) or []:
            raw_calls.append(tool_call.function)

        legacy = getattr(message, "function_call", None)
        if legacy is not None:
            raw_calls.append(legacy)

        calls = []
        for raw in raw_calls:
            arguments = json.loads(raw.arguments or "{}")
            if not isinstance(arguments, dict):
                logger.warning(f"Ignoring {raw.name} call with non-object arguments: {raw.arguments}")
                continue
            calls.append(FunctionCall(name=raw.name, arguments=arguments))
        return calls


class TextCallParser(FunctionCallParser):
    """`[Call extract_transfer_data with: ...]` written into the reply text"""

    def parse(self, message) -> List[FunctionCall]:
        content = getattr(message, "content", None) or ""
        match = TEXT_CALL_PATTERN.search(content)
        if not match:
            return []

        args_text = match.group(1)
        arguments: Dict[str, Any] = {}
        for name, (pattern, convert) in TEXT_FIELD_PATTERNS.items():
            found = pattern.search(args_text)
            if found:
                arguments[name] = convert(found.group(1))

        missing = [name for name in TEXT_FIELD_PATTERNS if name not in arguments]
        logger.warning(
            f"Recovered text function call: fields={sorted(arguments)}, "
            f"missing={missing}"
        )
        return [FunctionCall(name=EXTRACT_FUNCTION, arguments=arguments)]

    def clean_reply(self, content: Optional[str]) -> str:
        return TEXT_CALL_PATTERN.sub("", content or "").strip()


class CompositeCallParser(FunctionCallParser):
    """Structured calls first; text fallback only when there are none"""

    def __init__(self, parsers: Optional[List[FunctionCallParser]] = None):
        self.parsers = parsers or [ToolCallParser(), TextCallParser()]

    def parse(self, message) -> List[FunctionCall]:
        for parser in self.parsers:
            calls = parser.parse(message)
            if calls:
                return calls
        return []

    def clean_reply(self, content: Optional[str]) -> str:
        for parser in self.parsers:
            content = parser.clean_reply(content)
        return content


# ============================================
# Extractor
# ============================================

class ConversationExtractor:
    """
    Collects transfer details across chat turns.
    The draft is passed in and returned; no per-instance conversation state.
    """

    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        search: Optional[SearchClient] = None,
        parser: Optional[FunctionCallParser] = None,
        city: Optional[str] = None,
        context_turns: Optional[int] = None
    ):
        self.llm = llm or default_llm_client
        self.search = search or default_search_client
        self.parser = parser or CompositeCallParser()
        self.city = city or settings.SERVICE_CITY
        self.context_turns = context_turns or settings.CONTEXT_WINDOW_TURNS

    def build_messages(self, message: str, history: List[Dict[str, str]], language: str) -> List[Dict[str, str]]:
        system_prompt = EXTRACTION_PROMPT.format(city=self.city, language=language, **time_context())

        messages = [{"role": "system", "content": system_prompt}]
        for turn in (history or [])[-self.context_turns:]:
            role = turn.get("role")
            if role in ("user", "assistant", "system") and turn.get("content"):
                messages.append({"role": role, "content": turn["content"]})
        messages.append({"role": "user", "content": message})
        return messages

    async def extract(
        self,
        message: str,
        history: Optional[List[Dict[str, str]]] = None,
        draft: Optional[ItineraryDraft] = None,
        language: Optional[str] = None
    ) -> ExtractionResult:
        """
        Process one user message against the current draft.
        Never raises: failures return the prior draft with an apology.
        """
        draft = draft or ItineraryDraft()
        language = resolve_language(language, message)

        try:
            llm_message = await self.llm.chat(
                self.build_messages(message, history or [], language),
                tools=EXTRACTION_TOOLS,
                temperature=0.1,
                max_tokens=1000
            )
            calls = self.parser.parse(llm_message)

            address_call = next((c for c in calls if c.name == ADDRESS_FUNCTION), None)
            if address_call is not None:
                return await self._address_reply(address_call, draft, language)

            updated = draft
            for call in calls:
                if call.name == EXTRACT_FUNCTION:
                    updated = updated.merge(call.arguments)
                    logger.info(f"Draft updated: {updated.to_dict()}")

            reply = self.parser.clean_reply(getattr(llm_message, "content", None))
        except LLMUnavailableError as e:
            logger.error(f"Extraction failed: {e}")
            return ExtractionResult(ERROR_REPLY, draft, True, language)
        except Exception as e:
            logger.exception(f"Extraction failed: {e}")
            return ExtractionResult(ERROR_REPLY, draft, True, language)

        draft = updated

        if draft.is_complete:
            return ExtractionResult(reply or COMPLETE_REPLY, draft, False, language)

        return ExtractionResult(reply or COLLECTING_REPLY, draft, True, language)

    async def _address_reply(self, call: FunctionCall, draft: ItineraryDraft, language: str) -> ExtractionResult:
        address = str(call.arguments.get("address") or "").strip()
        check = await self.search.check_address(address)
        logger.info(f"Address check '{address}': in_area={check.in_service_area}, confidence={check.confidence}")

        if check.in_service_area:
            reply = f'Great! I confirmed that "{address}" is in {self.city}. Please provide the rest of your transfer details.'
        else:
            clarification = check.clarification or f"Please provide a {self.city} address or landmark."
            reply = (
                f'I found that "{address}" is not in {self.city}. We only provide transfers within '
                f"{self.city} and {self.city} Airport. {clarification}"
            )

        return ExtractionResult(reply, draft, True, language)


# ============================================
# Global Instance
# ============================================

conversation_extractor = ConversationExtractor()

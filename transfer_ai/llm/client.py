# llm/client.py
"""
OpenAI client wrapper shared by the extractor, the enrichment
summaries, the supplier narratives and audio transcription.
"""

import json
from typing import Optional, Dict, Any, List

from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from ..config import settings
from ..errors import LLMUnavailableError


class LLMClient:
    """Async chat/transcription client. Raises LLMUnavailableError on any failure."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MODEL
        self.base_url = base_url or settings.OPENAI_BASE_URL
        self._client: Optional[AsyncOpenAI] = None

        if self.configured:
            logger.info(f"LLMClient: using OpenAI model {self.model}")
        else:
            logger.warning("LLMClient: OPENAI_API_KEY not configured, LLM features disabled")

    @property
    def configured(self) -> bool:
        return bool(self.api_key) and not self.api_key.startswith("sk-your")

    @property
    def client(self) -> AsyncOpenAI:
        if not self.configured:
            raise LLMUnavailableError("OpenAI API key not configured")
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def chat(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        temperature: float = 0.7,
        max_tokens: int = 500,
        response_format: Optional[Dict[str, str]] = None
    ):
        """Run one chat completion and return the first choice's message"""
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        if response_format:
            kwargs["response_format"] = response_format

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            logger.error(f"OpenAI error: {e}")
            raise LLMUnavailableError(str(e)) from e

        if not response.choices:
            raise LLMUnavailableError("OpenAI returned no choices")

        return response.choices[0].message

    async def complete(self, system_prompt: str, user_prompt: str,
                       temperature: float = 0.7, max_tokens: int = 500) -> str:
        message = await self.chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens
        )
        return (message.content or "").strip()

    async def complete_json(self, system_prompt: str, user_prompt: str,
                            max_tokens: int = 800) -> Dict[str, Any]:
        """Completion constrained to a JSON object"""
        message = await self.chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=0.1,
            max_tokens=max_tokens,
            response_format={"type": "json_object"}
        )
        try:
            return json.loads(message.content or "{}")
        except json.JSONDecodeError as e:
            raise LLMUnavailableError(f"LLM returned invalid JSON: {e}") from e

    async def transcribe(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        """Speech to text for an uploaded audio clip"""
        try:
            result = await self.client.audio.transcriptions.create(
                model=settings.TRANSCRIPTION_MODEL,
                file=(filename, content, content_type or "audio/webm")
            )
        except OpenAIError as e:
            logger.error(f"Transcription error: {e}")
            raise LLMUnavailableError(str(e)) from e

        return result.text


# ============================================
# Global Instance
# ============================================

llm_client = LLMClient()

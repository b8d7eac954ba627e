# agents/concierge.py
"""
Transfer Concierge (chat-facing)

One user turn:
1. Resolve (or create) the chat session
2. Load recent turns and the itinerary draft
3. Run the extractor
4. Persist the new draft and both messages

Storage problems are logged and never fail the turn.
"""

import uuid
from typing import Dict, Any, Optional, List

from loguru import logger

from ..interfaces.conversation_store import ChatSessionStore, chat_session_store as default_chat_store
from ..interfaces.session_store import DraftStore, draft_store as default_draft_store
from ..llm.extractor import ConversationExtractor, conversation_extractor as default_extractor
from ..schemas.transfer_schemas import ItineraryDraft
from ..utils.language import resolve_language

ANONYMOUS_USER = "anonymous"


class TransferConcierge:
    """Glues the extractor to the chat and draft stores"""

    def __init__(
        self,
        extractor: Optional[ConversationExtractor] = None,
        chat_store: Optional[ChatSessionStore] = None,
        drafts: Optional[DraftStore] = None
    ):
        self.extractor = extractor or default_extractor
        self.chat_store = chat_store or default_chat_store
        self.drafts = drafts or default_draft_store

    async def process_message(
        self,
        message: str,
        language: Optional[str] = None,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        user_id = str(user_id or ANONYMOUS_USER)
        language = resolve_language(language, message)

        session_id = await self._resolve_session(message, session_id, user_id)
        history = await self._load_history(session_id)
        draft = self._load_draft(session_id)

        result = await self.extractor.extract(message, history, draft, language)

        try:
            self.drafts.save_draft(session_id, result.draft)
        except Exception as e:
            logger.error(f"Failed to save draft for {session_id}: {e}")

        try:
            await self.chat_store.add_message(session_id, user_id, "user", message)
            await self.chat_store.add_message(session_id, user_id, "assistant", result.reply)
        except Exception as e:
            logger.error(f"Failed to save messages for {session_id}: {e}")

        logger.info(
            f"Turn processed: session={session_id}, status={result.draft.status.value}, "
            f"needs_clarification={result.needs_clarification}"
        )

        return {
            "response": result.reply,
            "extractedData": result.extracted_data(),
            "needsClarification": result.needs_clarification,
            "sessionId": session_id,
        }

    def reset(self, session_id: str):
        """Forget the collected itinerary for a session"""
        self.drafts.reset_draft(session_id)

    async def _resolve_session(self, message: str, session_id: Optional[str], user_id: str) -> str:
        try:
            if session_id:
                session = await self.chat_store.get_session(session_id)
                if session is None:
                    session = await self.chat_store.create_session(user_id, message, session_id=session_id)
            else:
                session = await self.chat_store.create_session(user_id, message)
            return session.id
        except Exception as e:
            logger.error(f"Chat session lookup failed: {e}")
            return session_id or uuid.uuid4().hex

    async def _load_history(self, session_id: str) -> List[Dict[str, str]]:
        try:
            return await self.chat_store.get_recent_turns(session_id)
        except Exception as e:
            logger.error(f"Failed to load history for {session_id}: {e}")
            return []

    def _load_draft(self, session_id: str) -> ItineraryDraft:
        try:
            return self.drafts.get_draft(session_id)
        except Exception as e:
            logger.error(f"Failed to load draft for {session_id}: {e}")
            return ItineraryDraft()


# ============================================
# Global Instance
# ============================================

transfer_concierge = TransferConcierge()

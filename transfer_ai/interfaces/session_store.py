# interfaces/session_store.py
"""
Itinerary Draft Store
Keeps the per-session ItineraryDraft between conversation turns
so the user can refine a request without starting over.
"""

import json
from typing import Optional, Dict

import redis
from loguru import logger

from ..config import settings
from ..schemas.transfer_schemas import ItineraryDraft


class DraftStore:
    """
    Session id -> ItineraryDraft.
    Redis with a TTL when REDIS_URL is configured, in-memory otherwise.
    """

    def __init__(self, redis_url: Optional[str] = None, ttl_hours: Optional[int] = None):
        self.ttl_seconds = (ttl_hours if ttl_hours is not None else settings.SESSION_TTL_HOURS) * 3600
        self.redis_client: Optional[redis.Redis] = None
        self._memory_store: Dict[str, Dict] = {}

        url = redis_url if redis_url is not None else settings.REDIS_URL
        if url:
            try:
                self.redis_client = redis.Redis.from_url(url, decode_responses=True)
                self.redis_client.ping()
                logger.info(f"DraftStore connected to Redis at {url}")
            except redis.RedisError as e:
                logger.warning(f"Redis connection failed, using in-memory draft store: {e}")
                self.redis_client = None
        else:
            logger.info("DraftStore using in-memory store")

    def _get_key(self, session_id: str) -> str:
        return f"draft:{session_id}"

    def get_draft(self, session_id: str) -> ItineraryDraft:
        """Stored draft for the session, or an empty one"""
        data = None

        if self.redis_client:
            try:
                raw = self.redis_client.get(self._get_key(session_id))
                if raw:
                    data = json.loads(raw)
            except redis.RedisError as e:
                logger.error(f"Redis get error: {e}")

        if data is None:
            data = self._memory_store.get(session_id)

        if not data:
            return ItineraryDraft()
        return ItineraryDraft.model_validate(data)

    def save_draft(self, session_id: str, draft: ItineraryDraft):
        data = draft.to_dict()

        if self.redis_client:
            try:
                self.redis_client.setex(self._get_key(session_id), self.ttl_seconds, json.dumps(data))
                return
            except redis.RedisError as e:
                logger.error(f"Redis save error: {e}")

        self._memory_store[session_id] = data

    def reset_draft(self, session_id: str):
        if self.redis_client:
            try:
                self.redis_client.delete(self._get_key(session_id))
            except redis.RedisError as e:
                logger.error(f"Redis delete error: {e}")

        self._memory_store.pop(session_id, None)
        logger.info(f"Reset draft for session {session_id}")


# ============================================
# Global Instance
# ============================================

draft_store = DraftStore()

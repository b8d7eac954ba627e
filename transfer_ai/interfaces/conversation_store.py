"""
Chat Session Store - Persists chat sessions and their messages
"""

import json
import uuid
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

import redis.asyncio as redis
from redis.exceptions import RedisError
from loguru import logger

from ..config import settings


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class StoredSession:
    """One chat session owned by a user"""
    id: str
    user_id: str
    first_message: str
    created_at: str
    updated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "firstMessage": self.first_message,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class StoredMessage:
    """One chat message; sender_type is 'user' or 'assistant'"""
    id: str
    session_id: str
    user_id: str
    sender_type: str
    content: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "userId": self.user_id,
            "senderType": self.sender_type,
            "content": self.content,
            "createdAt": self.created_at,
        }


class ChatSessionStore:
    """
    Stores chat sessions and messages

    Uses redis.asyncio when REDIS_URL is configured.
    Falls back to in-memory storage when Redis is missing or fails.
    """

    def __init__(self, redis_url: Optional[str] = None, ttl_hours: Optional[int] = None):
        self.redis_url = redis_url if redis_url is not None else settings.REDIS_URL
        self.ttl_seconds = (ttl_hours if ttl_hours is not None else settings.SESSION_TTL_HOURS) * 3600
        self.redis_client: Optional[redis.Redis] = None

        # Fallback in-memory storage
        self.sessions: Dict[str, StoredSession] = {}
        self.messages: Dict[str, List[StoredMessage]] = {}

        self._initialized = False

    async def _ensure_connected(self):
        if self._initialized:
            return
        self._initialized = True

        if not self.redis_url:
            logger.info("ChatSessionStore using in-memory storage")
            return

        try:
            self.redis_client = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
            await self.redis_client.ping()
            logger.info("ChatSessionStore connected to Redis")
        except RedisError as e:
            logger.warning(f"Redis connection failed, using in-memory storage: {e}")
            self.redis_client = None

    def _degrade(self, operation: str, error: Exception):
        logger.error(f"Redis error during {operation}, switching to in-memory storage: {error}")
        self.redis_client = None

    # ============================================
    # Sessions
    # ============================================

    async def create_session(self, user_id: str, first_message: str = "",
                             session_id: Optional[str] = None) -> StoredSession:
        await self._ensure_connected()

        timestamp = _now()
        session = StoredSession(
            id=session_id or uuid.uuid4().hex,
            user_id=str(user_id),
            first_message=(first_message or "")[:200],
            created_at=timestamp,
            updated_at=timestamp
        )
        await self._save_session(session)
        logger.info(f"Created chat session {session.id} for user {session.user_id}")
        return session

    async def get_session(self, session_id: str) -> Optional[StoredSession]:
        await self._ensure_connected()

        if self.redis_client:
            try:
                raw = await self.redis_client.get(f"chat_session:{session_id}")
                return StoredSession(**json.loads(raw)) if raw else None
            except RedisError as e:
                self._degrade("get_session", e)

        return self.sessions.get(session_id)

    async def list_sessions(self, user_id: str) -> List[StoredSession]:
        """User's sessions, most recently updated first"""
        await self._ensure_connected()

        if self.redis_client:
            try:
                ids = await self.redis_client.zrevrange(f"user_sessions:{user_id}", 0, -1)
                sessions = []
                for session_id in ids:
                    raw = await self.redis_client.get(f"chat_session:{session_id}")
                    if raw:
                        sessions.append(StoredSession(**json.loads(raw)))
                return sessions
            except RedisError as e:
                self._degrade("list_sessions", e)

        owned = [s for s in self.sessions.values() if s.user_id == str(user_id)]
        return sorted(owned, key=lambda s: s.updated_at, reverse=True)

    async def update_session(self, session_id: str, **updates: Any) -> Optional[StoredSession]:
        """Apply field updates and bump updated_at"""
        session = await self.get_session(session_id)
        if session is None:
            logger.warning(f"Chat session not found: {session_id}")
            return None

        for key, value in updates.items():
            if key == "first_message" and value is not None:
                setattr(session, key, value)
        session.updated_at = _now()

        await self._save_session(session)
        return session

    async def delete_session(self, session_id: str) -> bool:
        session = await self.get_session(session_id)
        if session is None:
            return False

        if self.redis_client:
            try:
                await self.redis_client.delete(f"chat_session:{session_id}", f"chat_messages:{session_id}")
                await self.redis_client.zrem(f"user_sessions:{session.user_id}", session_id)
            except RedisError as e:
                self._degrade("delete_session", e)

        self.sessions.pop(session_id, None)
        self.messages.pop(session_id, None)
        logger.info(f"Deleted chat session {session_id}")
        return True

    async def _save_session(self, session: StoredSession):
        if self.redis_client:
            try:
                await self.redis_client.setex(
                    f"chat_session:{session.id}", self.ttl_seconds, json.dumps(asdict(session))
                )
                await self.redis_client.zadd(
                    f"user_sessions:{session.user_id}",
                    {session.id: datetime.fromisoformat(session.updated_at).timestamp()}
                )
                return
            except RedisError as e:
                self._degrade("save_session", e)

        self.sessions[session.id] = session

    # ============================================
    # Messages
    # ============================================

    async def add_message(self, session_id: str, user_id: str, sender_type: str, content: str) -> StoredMessage:
        await self._ensure_connected()

        message = StoredMessage(
            id=uuid.uuid4().hex,
            session_id=session_id,
            user_id=str(user_id),
            sender_type=sender_type,
            content=content,
            created_at=_now()
        )

        stored = False
        if self.redis_client:
            try:
                key = f"chat_messages:{session_id}"
                await self.redis_client.rpush(key, json.dumps(asdict(message)))
                await self.redis_client.expire(key, self.ttl_seconds)
                stored = True
            except RedisError as e:
                self._degrade("add_message", e)

        if not stored:
            self.messages.setdefault(session_id, []).append(message)

        await self.update_session(session_id)
        return message

    async def get_messages(self, session_id: str, limit: Optional[int] = None) -> List[StoredMessage]:
        """Messages oldest first; `limit` keeps only the newest ones"""
        await self._ensure_connected()

        if self.redis_client:
            try:
                start = -limit if limit else 0
                raw = await self.redis_client.lrange(f"chat_messages:{session_id}", start, -1)
                return [StoredMessage(**json.loads(item)) for item in raw]
            except RedisError as e:
                self._degrade("get_messages", e)

        messages = self.messages.get(session_id, [])
        return messages[-limit:] if limit else list(messages)

    async def get_recent_turns(self, session_id: str, count: Optional[int] = None) -> List[Dict[str, str]]:
        """Last `count` messages as chat-completion turns"""
        messages = await self.get_messages(session_id, limit=count or settings.CONTEXT_WINDOW_TURNS)
        return [
            {"role": "user" if m.sender_type == "user" else "assistant", "content": m.content}
            for m in messages
        ]

    async def close(self):
        if self.redis_client:
            await self.redis_client.aclose()
            logger.info("ChatSessionStore connection closed")


# ============================================
# Global Instance
# ============================================

chat_session_store = ChatSessionStore()

"""Best-effort conversation history."""

import json
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from auracoach.core.errors import PersistenceError
from auracoach.storage.keys import history_key, history_prefix, is_history_key
from auracoach.storage.kv import KeyValueStore

# 30 days
HISTORY_TTL_SECONDS = 60 * 60 * 24 * 30


class HistoryRecorder:
    def __init__(self, store: KeyValueStore, ttl_seconds: int = HISTORY_TTL_SECONDS):
        self._store = store
        self._ttl_seconds = ttl_seconds

    async def record(
        self,
        user_id: str,
        session_id: str | None,
        session_type: str,
        message: str,
        response: dict[str, Any],
    ) -> None:
        """Write one coaching turn. Never raises; history is not required for correctness."""
        at = datetime.now(timezone.utc)
        entry = {
            "userId": user_id,
            "sessionId": session_id,
            "sessionType": session_type,
            "message": message,
            "response": response,
            "timestamp": at.isoformat(),
        }
        try:
            await self._store.put(history_key(user_id, at), json.dumps(entry), ttl_seconds=self._ttl_seconds)
        except Exception as e:
            logger.warning(
                "Failed to record coaching history (non-fatal)",
                user_id=user_id,
                session_type=session_type,
                error=str(e),
            )

    async def list_recent(self, user_id: str, limit: int = 20) -> list[dict[str, Any]]:
        """Return up to ``limit`` history entries, newest first.

        Raises:
            PersistenceError: If the store cannot be read
        """
        keys = [key for key in await self._store.list_keys(history_prefix(user_id)) if is_history_key(user_id, key)]
        entries: list[dict[str, Any]] = []
        for key in keys[:limit]:
            raw = await self._store.get(key)
            if raw is None:
                continue
            try:
                entries.append(json.loads(raw))
            except json.JSONDecodeError as e:
                raise PersistenceError(f"History entry {key} is corrupt") from e
        return entries

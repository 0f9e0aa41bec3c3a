"""Whole-snapshot JSON collections stored in Redis."""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, cast

from redis.asyncio import Redis

from layoutforge.config import settings
from layoutforge.core.redis import get_redis_client

logger = logging.getLogger(__name__)

TEMPLATES = "templates"
LIBRARY = "library"
PUBLISHED = "published"


class CollectionStore:
    """Read-whole / write-whole persistence for one named collection.

    Each collection is a single JSON array under one key. There is no
    per-item update: callers load the snapshot, change it, and save it back.
    Concurrent writers are not merged; the last save wins.
    """

    def __init__(self, name: str, client: Redis | None = None) -> None:
        self.name = name
        self.key = settings.collection_key(name)
        self._client = client

    @property
    def client(self) -> Redis:
        if self._client is None:
            self._client = get_redis_client()
        return self._client

    async def load(self) -> list[dict[str, Any]]:
        raw = await cast(Awaitable[str | None], self.client.get(self.key))
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(
                "Discarding unreadable collection snapshot",
                extra={"collection": self.name, "key": self.key},
            )
            return []
        if not isinstance(items, list):
            logger.warning(
                "Discarding non-array collection snapshot",
                extra={"collection": self.name, "key": self.key},
            )
            return []
        return [item for item in items if isinstance(item, dict)]

    async def save(self, items: list[dict[str, Any]]) -> None:
        await cast(Awaitable[Any], self.client.set(self.key, json.dumps(items, ensure_ascii=False)))
        logger.info(
            "Collection saved",
            extra={"collection": self.name, "item_count": len(items)},
        )

    async def find(self, item_id: str) -> dict[str, Any] | None:
        return next((item for item in await self.load() if item.get("id") == item_id), None)

    async def prepend(self, item: dict[str, Any]) -> None:
        """Store an item at the head of the collection (newest first)."""
        items = await self.load()
        await self.save([item, *[existing for existing in items if existing.get("id") != item.get("id")]])

    async def remove(self, item_id: str) -> bool:
        items = await self.load()
        kept = [item for item in items if item.get("id") != item_id]
        if len(kept) == len(items):
            return False
        await self.save(kept)
        return True

# repository/item_repository.py
from typing import Final, List, Optional, Sequence
from redis.asyncio import Redis
from config.cache import get_redis
from model.item import Item
from repository.namespaces import ITEM_INDEX, ITEMS
import logging

KEY_PREFIX: Final[str] = ITEMS
logger = logging.getLogger(__name__)


class ItemRepository:
    """
    Redis-backed item store keyed by item id.

    Items are long-lived vocabulary records, so no TTL is applied. An id set
    under ITEM_INDEX backs listing.
    """

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(item_id: str) -> str:
        return f"{KEY_PREFIX}:{item_id}"

    @staticmethod
    def _load(item_id: str, raw: Optional[bytes]) -> Optional[Item]:
        if raw is None:
            return None
        try:
            return Item.model_validate_json(raw)
        except Exception:
            logger.warning("items.decode.error id=%s", item_id)
            return None

    async def get(self, item_id: str) -> Optional[Item]:
        if not item_id:
            return None
        r = await self._client()
        return self._load(item_id, await r.get(self._key(item_id)))

    async def get_many(self, item_ids: Sequence[str]) -> List[Item]:
        """Known items in request order; unknown ids are dropped."""
        if not item_ids:
            return []
        r = await self._client()
        raws = await r.mget([self._key(i) for i in item_ids])
        out: List[Item] = []
        for item_id, raw in zip(item_ids, raws):
            item = self._load(item_id, raw)
            if item is not None:
                out.append(item)
        return out

    async def set(self, item: Item) -> None:
        r = await self._client()
        payload = item.model_dump_json(exclude_none=True).encode("utf-8")
        async with r.pipeline(transaction=True) as pipe:
            pipe.set(self._key(item.id), payload)
            pipe.sadd(ITEM_INDEX, item.id)
            await pipe.execute()

    async def delete(self, item_id: str) -> int:
        if not item_id:
            return 0
        r = await self._client()
        async with r.pipeline(transaction=True) as pipe:
            pipe.delete(self._key(item_id))
            pipe.srem(ITEM_INDEX, item_id)
            removed, _ = await pipe.execute()
        return int(removed)

    async def all(self) -> List[Item]:
        r = await self._client()
        ids = sorted(
            v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else str(v)
            for v in await r.smembers(ITEM_INDEX)
        )
        items = await self.get_many(ids)
        return sorted(items, key=lambda i: i.createdAt)

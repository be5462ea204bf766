# repository/asset_repository.py
from typing import Optional
from redis.asyncio import Redis
from config.cache import get_redis
from repository.namespaces import ASSETS
from util.constants import InternalURIs


class AssetRepository:
    """
    Redis byte storage for synthesized audio keyed by asset id.

    put_audio returns the public path the clip is served from; the same asset
    id is overwritten when an item is regenerated.
    """

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(asset_id: str) -> str:
        return f"{ASSETS}:{asset_id}"

    @staticmethod
    def path_for(asset_id: str) -> str:
        return f"{InternalURIs.ASSETS}/{asset_id}"

    async def put_audio(self, asset_id: str, data: bytes) -> str:
        r = await self._client()
        await r.set(self._key(asset_id), data)
        return self.path_for(asset_id)

    async def get_audio(self, asset_id: str) -> Optional[bytes]:
        r = await self._client()
        return await r.get(self._key(asset_id))

    async def delete(self, asset_id: str) -> int:
        r = await self._client()
        return int(await r.delete(self._key(asset_id)))

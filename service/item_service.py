# service/item_service.py
import logging
from typing import List
from uuid import uuid4
from config.languages import get_language_config
from model.api import CreateItemRequest
from model.item import IN_FLIGHT, Item
from repository.asset_repository import AssetRepository
from repository.item_repository import ItemRepository
from util.enums import ErrorMessage
from util.errors import AppError
from util.functions import asset_key

logger = logging.getLogger(__name__)


class ItemService:
    def __init__(self, items: ItemRepository, assets: AssetRepository) -> None:
        self._items = items
        self._assets = assets

    async def create(self, payload: CreateItemRequest) -> Item:
        config = get_language_config(payload.groupKey)
        if config is None:
            raise AppError(
                ErrorMessage.UNSUPPORTED_LANGUAGE.value.message,
                ErrorMessage.UNSUPPORTED_LANGUAGE.value.http_status,
            )
        text = payload.text.strip()
        if not text:
            raise AppError("Text is required")
        item = Item(id=str(uuid4()), text=text, groupKey=config.code)
        await self._items.set(item)
        logger.info("items.create id=%s lang=%s", item.id, item.groupKey)
        return item

    async def get(self, item_id: str) -> Item:
        item = await self._items.get(item_id)
        if item is None:
            raise AppError(
                ErrorMessage.ITEM_NOT_FOUND.value.message,
                ErrorMessage.ITEM_NOT_FOUND.value.http_status,
            )
        return item

    async def list(self) -> List[Item]:
        return await self._items.all()

    async def delete(self, item_id: str) -> None:
        item = await self.get(item_id)
        if item.status in IN_FLIGHT:
            raise AppError(
                ErrorMessage.ITEM_IN_FLIGHT.value.message,
                ErrorMessage.ITEM_IN_FLIGHT.value.http_status,
            )
        await self._items.delete(item_id)
        # Audio is keyed by language and text, so it only exists once generated.
        if item.resultAssetPath:
            await self._assets.delete(asset_key(item.groupKey, item.text))
        logger.info("items.delete id=%s", item_id)

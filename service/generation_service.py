# service/generation_service.py
import logging
from contextlib import aclosing
from typing import AsyncIterator, Optional, Sequence
from config.languages import get_language_config
from core.batch_runner import BatchRunner
from core.reconciler import ItemStore, apply_item_result, transition_item
from core.streaming import encode_event
from model.api import GenerateItemResponse
from model.events import GroupError
from model.item import IN_FLIGHT, ItemStatus
from util.enums import ErrorMessage
from util.errors import AppError

logger = logging.getLogger(__name__)


class GenerationService:
    def __init__(self, items: ItemStore, runner: BatchRunner) -> None:
        self._items = items
        self._runner = runner

    async def stream_batch(
        self, ids: Sequence[str], group_key: Optional[str] = None
    ) -> AsyncIterator[bytes]:
        """
        Producer endpoint body: resolve the ids, run them as one group and
        relay the runner's NDJSON events as they are written. Unknown ids are
        dropped; if none remain the stream carries a single error event. A
        group runs under one language, so items of another language are an
        error too.
        """
        wanted = list(dict.fromkeys(i for i in ids if i))
        try:
            known = await self._items.get_many(wanted)
        except Exception:
            logger.error("batch.items.read.error requested=%d", len(wanted))
            yield encode_event(GroupError(message="Item store is unavailable"))
            return

        key = (group_key or (known[0].groupKey if known else "")).lower() or None
        strays = [i.id for i in known if i.groupKey.lower() != key]
        if strays:
            logger.warning("batch.stream.mixed lang=%s strays=%d", key, len(strays))
            yield encode_event(GroupError(message=ErrorMessage.MIXED_GROUP.value.message))
            return

        logger.info(
            "batch.stream.start requested=%d known=%d lang=%s", len(wanted), len(known), key
        )
        async with aclosing(self._runner.stream(known, get_language_config(key))) as chunks:
            async for chunk in chunks:
                yield chunk

    async def generate_one(self, item_id: str) -> GenerateItemResponse:
        """
        One-item, non-streaming generation. Walks the item through the same
        status machine as a batch and returns the result synchronously.
        """
        item = await self._items.get(item_id)
        if item is None:
            raise AppError(
                ErrorMessage.ITEM_NOT_FOUND.value.message,
                ErrorMessage.ITEM_NOT_FOUND.value.http_status,
            )
        if item.status in IN_FLIGHT:
            raise AppError(
                ErrorMessage.ITEM_IN_FLIGHT.value.message,
                ErrorMessage.ITEM_IN_FLIGHT.value.http_status,
            )
        config = get_language_config(item.groupKey)
        if config is None:
            raise AppError(
                ErrorMessage.UNSUPPORTED_LANGUAGE.value.message,
                ErrorMessage.UNSUPPORTED_LANGUAGE.value.http_status,
            )
        if self._runner.precondition([item], config):
            raise AppError(
                ErrorMessage.PROVIDER_NOT_CONFIGURED.value.message,
                ErrorMessage.PROVIDER_NOT_CONFIGURED.value.http_status,
            )

        await transition_item(self._items, item.id, ItemStatus.pending, errorMessage=None)
        await transition_item(self._items, item.id, ItemStatus.generating)
        result = await self._runner.generate(item, config)
        await apply_item_result(self._items, item.id, result)
        logger.info("generate.one id=%s ok=%s", item.id, result.success)
        return GenerateItemResponse(
            success=result.success,
            resultAssetPath=result.resultAssetPath,
            resultText=result.resultText,
            errorMessage=result.errorMessage,
        )

# core/batch_runner.py
import asyncio
import logging
from contextlib import aclosing
from typing import AsyncIterator, List, Optional, Sequence
from config.languages import LanguageConfig
from core.entities import AssetStore, GenerationProvider
from core.streaming import EventStreamWriter
from model.events import (
    GroupComplete,
    GroupError,
    GroupProgress,
    GroupResult,
    ItemResult,
)
from model.item import Item
from util.errors import ProviderNotConfigured
from util.functions import asset_key, clip_words, error_text
from util.timing import timed

logger = logging.getLogger(__name__)


class BatchRunner:
    """
    Sequential generation loop for one group of items.

    Per item: progress -> explain -> synthesize -> store audio -> result.
    A failing item is recorded and the loop moves on; only a precondition
    failure or an unexpected crash ends the group with an error event.
    """

    def __init__(self, provider: GenerationProvider, assets: AssetStore) -> None:
        self._provider = provider
        self._assets = assets

    async def generate(self, item: Item, config: LanguageConfig) -> ItemResult:
        """Run both provider calls for one item; never raises."""
        try:
            with timed(logger, "runner.item", lang=config.code):
                explanation = await self._provider.explain(item.text, config)
                audio = await self._provider.synthesize(explanation, config)
                path = await self._assets.put_audio(
                    asset_key(config.code, item.text), audio
                )
        except Exception as e:
            logger.warning(
                "runner.item.failed text=%s err=%s", clip_words(item.text), error_text(e)
            )
            return ItemResult(text=item.text, success=False, errorMessage=error_text(e))
        return ItemResult(
            text=item.text, success=True, resultText=explanation, resultAssetPath=path
        )

    def precondition(
        self, items: Sequence[Item], config: Optional[LanguageConfig]
    ) -> Optional[str]:
        if not items:
            return "Items array is required and must not be empty"
        if config is None:
            return "Unsupported language"
        try:
            self._provider.ensure_configured()
        except ProviderNotConfigured as e:
            return error_text(e)
        return None

    async def run(
        self,
        items: Sequence[Item],
        config: Optional[LanguageConfig],
        writer: EventStreamWriter,
    ) -> List[ItemResult]:
        results: List[ItemResult] = []
        total = len(items)
        try:
            problem = self.precondition(items, config)
            if problem:
                logger.warning("runner.precondition.failed reason=%s", problem)
                await writer.write(GroupError(message=problem))
                return results

            logger.info("runner.start lang=%s items=%d", config.code, total)
            with timed(logger, "runner.group", lang=config.code, items=total):
                for i, item in enumerate(items):
                    if writer.closed:
                        logger.warning(
                            "runner.consumer.gone lang=%s processed=%d total=%d",
                            config.code,
                            i,
                            total,
                        )
                        return results
                    await writer.write(
                        GroupProgress(
                            processedInGroup=i,
                            totalInGroup=total,
                            currentItemText=item.text,
                        )
                    )
                    result = await self.generate(item, config)
                    results.append(result)
                    await writer.write(
                        GroupResult(processedInGroup=i + 1, totalInGroup=total, item=result)
                    )

            await writer.write(
                GroupComplete(
                    processedInGroup=total, totalInGroup=total, allResults=results
                )
            )
            logger.info(
                "runner.done lang=%s ok=%d failed=%d",
                config.code,
                sum(1 for r in results if r.success),
                sum(1 for r in results if not r.success),
            )
            return results
        except Exception as e:
            logger.exception("runner.crashed processed=%d total=%d", len(results), total)
            await writer.write(GroupError(message=error_text(e)))
            return results
        finally:
            await writer.close()

    async def stream(
        self, items: Sequence[Item], config: Optional[LanguageConfig]
    ) -> AsyncIterator[bytes]:
        """
        Run the group in a task tied to this iterator and yield its NDJSON bytes.

        Closing the iterator early (consumer cancelled or disconnected) cancels
        the run and waits for it, so no provider call outlives its consumer.
        """
        writer = EventStreamWriter()
        task = asyncio.create_task(self.run(list(items), config, writer))
        try:
            async with aclosing(writer.iter_bytes()) as chunks:
                async for chunk in chunks:
                    yield chunk
            await task
        finally:
            if not task.done():
                logger.warning("runner.cancel items=%d written=%d", len(items), writer.written)
                task.cancel()
                await asyncio.wait([task])

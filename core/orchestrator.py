# core/orchestrator.py
import asyncio
import logging
from contextlib import aclosing
from functools import partial
from typing import Any, Callable, Dict, List, Sequence
from core.entities import GroupTransport, ItemGroup, JobHandle
from core.reconciler import JobReconciler
from core.streaming import decode_stream
from model.events import GroupError, ProgressEvent, TerminalEvent
from model.item import Item
from util.errors import TransportError
from util.functions import error_text
from util.timing import timed

logger = logging.getLogger(__name__)

GroupingKey = Callable[[Item], Any]


def by_language(item: Item) -> Any:
    return item.groupKey


def single_group(item: Item) -> Any:
    return None


def partition_items(items: Sequence[Item], key_of: GroupingKey) -> List[ItemGroup]:
    """Groups in first-seen key order; items keep their request order."""
    groups: Dict[Any, ItemGroup] = {}
    for item in items:
        key = key_of(item)
        if key not in groups:
            groups[key] = ItemGroup(key=key, items=[])
        groups[key].items.append(item)
    return list(groups.values())


class BatchOrchestrator:
    """
    Runs one admitted job group by group, never two groups at once, so the
    provider sees at most one outstanding request.

    A group that ends in an error event (or whose stream breaks) aborts the
    whole job; items of groups that never started are failed with it.
    """

    def __init__(self, reconciler: JobReconciler, transport: GroupTransport) -> None:
        self._reconciler = reconciler
        self._transport = transport

    @property
    def reconciler(self) -> JobReconciler:
        return self._reconciler

    async def submit(
        self, ids: Sequence[str], grouping_key_of: GroupingKey = by_language
    ) -> JobHandle:
        handle = await self._reconciler.admit(
            ids, plan=partial(partition_items, key_of=grouping_key_of)
        )
        handle.task = asyncio.create_task(self._drive(handle))
        return handle

    async def shutdown(self) -> None:
        """Cancel the running job, if any, and wait until its items are settled."""
        handle = self._reconciler.handle
        if handle is None or handle.task is None or handle.task.done():
            return
        logger.warning("orchestrator.shutdown job=%s", handle.job_id)
        handle.task.cancel()
        await asyncio.wait([handle.task])

    async def _drive(self, handle: JobHandle) -> None:
        count = len(handle.groups)
        try:
            with timed(logger, "orchestrator.job", job=handle.job_id, groups=count):
                for n, group in enumerate(handle.groups, start=1):
                    logger.info(
                        "orchestrator.group.start job=%s group=%d/%d key=%s items=%d",
                        handle.job_id,
                        n,
                        count,
                        group.key,
                        len(group.items),
                    )
                    self._reconciler.begin_group(group)
                    terminal = await self._run_group(group)
                    if isinstance(terminal, GroupError):
                        logger.warning(
                            "orchestrator.group.aborted job=%s group=%d/%d skipped=%d",
                            handle.job_id,
                            n,
                            count,
                            count - n,
                        )
                        return
            await self._reconciler.finalize()
        except asyncio.CancelledError:
            await self._reconciler.fail("Generation was cancelled")
            raise
        except Exception as e:
            logger.exception("orchestrator.job.error job=%s", handle.job_id)
            await self._reconciler.fail(error_text(e))

    async def _run_group(self, group: ItemGroup) -> ProgressEvent:
        async with aclosing(self._transport.open(group)) as chunks:
            async with aclosing(decode_stream(chunks)) as events:
                async for event in events:
                    await self._reconciler.apply(event)
                    if isinstance(event, TerminalEvent):
                        return event
        raise TransportError("Stream ended before the group completed")

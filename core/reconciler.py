# core/reconciler.py
import asyncio
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Set
from uuid import uuid4
from config.settings import settings
from core.entities import ItemGroup, JobHandle
from model.events import (
    GroupComplete,
    GroupError,
    GroupProgress,
    GroupResult,
    ItemResult,
    ProgressEvent,
)
from model.item import IN_FLIGHT, Item, ItemStatus, can_transition
from model.job import BatchState, JobOutcome
from util.enums import ErrorMessage, RejectionReason
from util.errors import JobRejected
from util.functions import clip_words

logger = logging.getLogger(__name__)

GroupPlan = Callable[[List[Item]], List[ItemGroup]]


class ItemStore(Protocol):
    async def get(self, item_id: str) -> Optional[Item]: ...

    async def get_many(self, item_ids: Sequence[str]) -> List[Item]: ...

    async def set(self, item: Item) -> None: ...


class SingleFlightGuard:
    """Process-wide "a batch job is running" flag with one mutation path."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def try_acquire(self) -> bool:
        with self._lock:
            if self._held:
                return False
            self._held = True
            return True

    def release(self) -> None:
        with self._lock:
            self._held = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def transition_item(
    items: ItemStore, item_id: str, target: ItemStatus, **fields: object
) -> Optional[Item]:
    """
    Move one item to `target` if the status machine allows it. Missing items
    and illegal transitions are logged and left untouched.
    """
    item = await items.get(item_id)
    if item is None:
        logger.warning("reconcile.item.missing id=%s", item_id)
        return None
    if item.status != target and not can_transition(item.status, target):
        logger.warning(
            "reconcile.transition.rejected id=%s from=%s to=%s",
            item_id,
            item.status.value,
            target.value,
        )
        return None
    updated = item.model_copy(update={"status": target, **fields})
    await items.set(updated)
    return updated


async def apply_item_result(
    items: ItemStore, item_id: str, result: ItemResult
) -> Optional[Item]:
    current = await items.get(item_id)
    if current is not None and current.status == ItemStatus.pending:
        # The progress line for this item never arrived.
        await transition_item(items, item_id, ItemStatus.generating)
    if result.success:
        return await transition_item(
            items,
            item_id,
            ItemStatus.complete,
            resultText=result.resultText,
            resultAssetPath=result.resultAssetPath,
            errorMessage=None,
            lastGeneratedAt=_utcnow(),
        )
    return await transition_item(
        items,
        item_id,
        ItemStatus.error,
        errorMessage=result.errorMessage or "Unknown error",
    )


def _check_groups(groups: Sequence[ItemGroup]) -> None:
    """One language and unique texts per group; results map back by text."""
    for group in groups:
        if len({item.groupKey.lower() for item in group.items}) > 1:
            raise JobRejected(
                RejectionReason.MIXED_GROUP, ErrorMessage.MIXED_GROUP.value.message
            )
        seen: Set[str] = set()
        for item in group.items:
            if item.text in seen:
                raise JobRejected(
                    RejectionReason.DUPLICATE_TEXT,
                    f'Duplicate text "{item.text}" in one group',
                )
            seen.add(item.text)


class JobReconciler:
    """
    Consumer side of the batch protocol.

    Owns the single-flight guard and the BatchState aggregate, and turns
    decoded progress events into item status writes. Overall progress is kept
    monotonic across groups by adding the totals of finished groups as an
    offset to each group's own counters.
    """

    def __init__(
        self,
        items: ItemStore,
        guard: Optional[SingleFlightGuard] = None,
        *,
        reset_after: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._items = items
        self._guard = guard or SingleFlightGuard()
        self._reset_after = (
            settings.PROGRESS_RESET_SECONDS if reset_after is None else reset_after
        )
        self._clock = clock
        self._state = BatchState()
        self._handle: Optional[JobHandle] = None
        self._t0 = 0.0
        self._offset = 0
        self._text_index: Dict[str, str] = {}
        self._applied: Set[str] = set()
        self._reset_task: Optional[asyncio.Task] = None

    @property
    def guard(self) -> SingleFlightGuard:
        return self._guard

    @property
    def state(self) -> BatchState:
        return self._state.model_copy()

    @property
    def handle(self) -> Optional[JobHandle]:
        return self._handle

    async def admit(self, ids: Sequence[str], *, plan: Optional[GroupPlan] = None) -> JobHandle:
        if self._guard.held:
            raise JobRejected(
                RejectionReason.ALREADY_RUNNING, "Another generation is already in progress"
            )
        wanted = list(dict.fromkeys(i for i in ids if i))
        if not wanted:
            raise JobRejected(
                RejectionReason.EMPTY_REQUEST, "No items selected for generation"
            )
        known = await self._items.get_many(wanted)
        if not known:
            raise JobRejected(
                RejectionReason.NO_VALID_ITEMS, "No valid items selected for generation"
            )
        busy = [item.id for item in known if item.status in IN_FLIGHT]
        if busy:
            logger.warning("reconcile.admit.busy ids=%s", ",".join(busy))
            raise JobRejected(
                RejectionReason.ITEM_IN_FLIGHT,
                f"{len(busy)} selected item(s) are already being generated",
            )
        groups = plan(known) if plan else [ItemGroup(key=None, items=known)]
        _check_groups(groups)

        if not self._guard.try_acquire():
            raise JobRejected(
                RejectionReason.ALREADY_RUNNING, "Another generation is already in progress"
            )

        if self._reset_task is not None:
            self._reset_task.cancel()
            self._reset_task = None

        started = _utcnow()
        handle = JobHandle(
            job_id=str(uuid4()),
            groups=groups,
            started_at=started,
            _outcome=asyncio.get_running_loop().create_future(),
        )
        self._handle = handle
        self._t0 = self._clock()
        self._offset = 0
        self._text_index = {}
        self._applied = set()
        self._state = BatchState(
            jobId=handle.job_id,
            running=True,
            totalRequested=handle.total,
            startedAt=started,
        )

        try:
            for item_id in handle.item_ids:
                await transition_item(
                    self._items, item_id, ItemStatus.pending, errorMessage=None
                )
        except BaseException:
            logger.error("reconcile.admit.write_failed job=%s", handle.job_id)
            self._handle = None
            self._state = BatchState()
            self._guard.release()
            raise

        logger.info(
            "reconcile.admit job=%s requested=%d known=%d groups=%d",
            handle.job_id,
            len(wanted),
            handle.total,
            len(groups),
        )
        return handle

    def begin_group(self, group: ItemGroup) -> None:
        self._text_index = group.text_index()
        self._applied = set()

    async def apply(self, event: ProgressEvent) -> None:
        if self._handle is None or self._handle.done:
            logger.debug("reconcile.event.ignored type=%s", event.type)
            return

        if isinstance(event, GroupProgress):
            if event.currentItemText is not None:
                item_id = self._text_index.get(event.currentItemText)
                if item_id:
                    await transition_item(self._items, item_id, ItemStatus.generating)
                self._state.currentItemText = event.currentItemText
            self._advance(self._offset + event.processedInGroup)

        elif isinstance(event, GroupResult):
            await self._apply_result(event.item)
            self._advance(self._offset + event.processedInGroup)

        elif isinstance(event, GroupComplete):
            # Results whose own line was lost are still in allResults.
            for result in event.allResults:
                await self._apply_result(result)
            self._offset += event.totalInGroup
            self._advance(self._offset)

        elif isinstance(event, GroupError):
            await self.fail(event.message)

    async def _apply_result(self, result: ItemResult) -> None:
        item_id = self._text_index.get(result.text)
        if item_id is None:
            logger.warning("reconcile.result.unknown text=%s", clip_words(result.text))
            return
        if item_id in self._applied:
            return
        self._applied.add(item_id)
        await apply_item_result(self._items, item_id, result)
        if result.success:
            self._state.successful += 1
        else:
            self._state.failed += 1

    def _advance(self, processed: int) -> None:
        s = self._state
        s.totalProcessed = min(max(s.totalProcessed, processed), s.totalRequested)
        if s.totalProcessed <= 0:
            s.estimatedSecondsRemaining = None
            return
        elapsed = max(0.0, self._clock() - self._t0)
        remaining = max(0, s.totalRequested - s.totalProcessed)
        s.estimatedSecondsRemaining = round(elapsed / s.totalProcessed * remaining, 1)

    async def fail(self, message: str) -> None:
        """Abort the job: every item not yet settled ends up in error."""
        handle = self._handle
        if handle is None or handle.done:
            return
        forced = 0
        for item_id in handle.item_ids:
            item = await self._items.get(item_id)
            if item is not None and item.status in IN_FLIGHT:
                await transition_item(
                    self._items, item_id, ItemStatus.error, errorMessage=message
                )
                forced += 1
        self._state.failed += forced
        logger.error(
            "reconcile.job.failed job=%s forced=%d err=%s", handle.job_id, forced, message
        )
        self._finish(
            JobOutcome(
                jobId=handle.job_id,
                success=False,
                successful=self._state.successful,
                failed=self._state.failed,
                errorMessage=message,
            )
        )

    async def finalize(self) -> None:
        handle = self._handle
        if handle is None or handle.done:
            return
        logger.info(
            "reconcile.job.done job=%s ok=%d failed=%d",
            handle.job_id,
            self._state.successful,
            self._state.failed,
        )
        self._finish(
            JobOutcome(
                jobId=handle.job_id,
                success=True,
                successful=self._state.successful,
                failed=self._state.failed,
            )
        )

    def _finish(self, outcome: JobOutcome) -> None:
        self._state.running = False
        self._state.currentItemText = None
        self._guard.release()
        if self._handle is not None:
            self._handle.resolve(outcome)
        self._reset_task = asyncio.create_task(self._reset_later(self._reset_after))

    async def _reset_later(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if not self._guard.held:
            self._state = BatchState()
            logger.debug("reconcile.state.reset")

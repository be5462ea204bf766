# tests/test_orchestrator.py
import asyncio

import pytest

from core.batch_runner import BatchRunner
from core.orchestrator import BatchOrchestrator, by_language, partition_items, single_group
from core.reconciler import JobReconciler
from core.streaming import encode_event
from core.transport import LocalTransport
from fakes import StubProvider, make_item
from model.events import GroupProgress
from model.item import ItemStatus
from util.enums import RejectionReason
from util.errors import JobRejected
from util.functions import asset_key


def _orchestrator(items, provider, assets, transport=None) -> BatchOrchestrator:
    transport = transport or LocalTransport(BatchRunner(provider, assets))
    return BatchOrchestrator(JobReconciler(items, reset_after=60), transport)


def test_partition_keeps_first_seen_order() -> None:
    rows = [
        make_item("1", "猫", "chinese"),
        make_item("2", "gato", "spanish"),
        make_item("3", "狗", "chinese"),
        make_item("4", "chat", "french"),
    ]
    groups = partition_items(rows, by_language)
    assert [g.key for g in groups] == ["chinese", "spanish", "french"]
    assert [g.ids for g in groups] == [["1", "3"], ["2"], ["4"]]

    (one,) = partition_items(rows, single_group)
    assert one.ids == ["1", "2", "3", "4"]


@pytest.mark.anyio
async def test_job_runs_each_language_group_in_turn(items, provider, assets) -> None:
    items.add(
        make_item("1", "猫", "chinese"),
        make_item("2", "hola", "spanish"),
        make_item("3", "狗", "chinese"),
    )
    orchestrator = _orchestrator(items, provider, assets)
    handle = await orchestrator.submit(["1", "2", "3"])
    outcome = await handle.wait()

    assert outcome.success
    assert (outcome.successful, outcome.failed) == (3, 0)
    assert all(items.status(i) == ItemStatus.complete for i in "123")
    assert [c[1:] for c in provider.calls if c[0] == "explain"] == [
        ("猫", "chinese"),
        ("狗", "chinese"),
        ("hola", "spanish"),
    ]
    assert provider.max_in_flight == 1

    state = orchestrator.reconciler.state
    assert state.running is False
    assert state.totalProcessed == state.totalRequested == 3
    assert not orchestrator.reconciler.guard.held


@pytest.mark.anyio
async def test_every_item_is_pending_before_any_generates(items, provider, assets) -> None:
    items.add(make_item("1", "猫", "chinese"), make_item("2", "hola", "spanish"))
    handle = await _orchestrator(items, provider, assets).submit(["1", "2"])
    await handle.wait()

    statuses = [s for _, s in items.history]
    first_generating = statuses.index(ItemStatus.generating)
    assert statuses[:first_generating] == [ItemStatus.pending, ItemStatus.pending]


@pytest.mark.anyio
async def test_failing_group_aborts_the_rest_of_the_job(items, provider, assets) -> None:
    items.add(
        make_item("1", "猫", "chinese"),
        make_item("2", "ciao", "klingon"),
        make_item("3", "hola", "spanish"),
    )
    handle = await _orchestrator(items, provider, assets).submit(["1", "2", "3"])
    outcome = await handle.wait()

    assert outcome.success is False
    assert outcome.errorMessage == "Unsupported language"
    assert items.status("1") == ItemStatus.complete
    assert items.status("2") == ItemStatus.error
    assert items.status("3") == ItemStatus.error
    assert items.item("3").errorMessage == "Unsupported language"
    assert (outcome.successful, outcome.failed) == (1, 2)
    assert ("explain", "hola", "spanish") not in provider.calls


@pytest.mark.anyio
async def test_item_failures_do_not_abort_the_job(items, assets) -> None:
    provider = StubProvider(fail_on={"b"})
    items.add(make_item("a"), make_item("b"), make_item("c"))
    handle = await _orchestrator(items, provider, assets).submit(["a", "b", "c"])
    outcome = await handle.wait()

    assert outcome.success
    assert (outcome.successful, outcome.failed) == (2, 1)
    assert items.status("b") == ItemStatus.error
    assert items.item("b").errorMessage == "explain failed for b"


@pytest.mark.anyio
async def test_stream_without_terminal_event_fails_the_job(items, provider, assets) -> None:
    class TruncatedTransport:
        async def open(self, group):
            yield encode_event(
                GroupProgress(
                    processedInGroup=0,
                    totalInGroup=len(group.items),
                    currentItemText=group.items[0].text,
                )
            )

    items.add(make_item("a"), make_item("b"))
    orchestrator = _orchestrator(items, provider, assets, TruncatedTransport())
    handle = await orchestrator.submit(["a", "b"])
    outcome = await handle.wait()

    assert outcome.success is False
    assert outcome.errorMessage == "Stream ended before the group completed"
    assert items.status("a") == ItemStatus.error
    assert items.status("b") == ItemStatus.error
    assert not orchestrator.reconciler.guard.held


@pytest.mark.anyio
async def test_second_job_is_rejected_while_one_runs(items, assets) -> None:
    gate = asyncio.Event()
    provider = StubProvider(gate=gate)
    items.add(make_item("a"), make_item("b"))
    orchestrator = _orchestrator(items, provider, assets)

    handle = await orchestrator.submit(["a"])
    with pytest.raises(JobRejected) as exc:
        await orchestrator.submit(["b"])
    assert exc.value.reason == RejectionReason.ALREADY_RUNNING
    assert items.status("b") == ItemStatus.idle

    gate.set()
    assert (await handle.wait()).success
    second = await orchestrator.submit(["b"])
    assert (await second.wait()).success
    assert items.status("b") == ItemStatus.complete


@pytest.mark.anyio
async def test_cancelled_job_fails_its_items(items, assets) -> None:
    gate = asyncio.Event()
    provider = StubProvider(gate=gate)
    items.add(make_item("a"))
    orchestrator = _orchestrator(items, provider, assets)
    handle = await orchestrator.submit(["a"])
    while items.status("a") != ItemStatus.generating:
        await asyncio.sleep(0)

    handle.task.cancel()
    outcome = await handle.wait()
    assert outcome.success is False
    assert outcome.errorMessage == "Generation was cancelled"
    assert items.status("a") == ItemStatus.error
    gate.set()


@pytest.mark.anyio
async def test_finished_items_can_be_regenerated(items, assets) -> None:
    provider = StubProvider(explanation="first")
    items.add(make_item("a"))
    orchestrator = _orchestrator(items, provider, assets)
    await (await orchestrator.submit(["a"])).wait()
    assert items.item("a").resultText == "first"

    provider.explanation = "second"
    outcome = await (await orchestrator.submit(["a"])).wait()
    assert outcome.success
    assert items.item("a").resultText == "second"
    assert items.status("a") == ItemStatus.complete


@pytest.mark.anyio
async def test_cancelled_job_leaves_no_provider_call_behind(items, assets) -> None:
    gate = asyncio.Event()
    provider = StubProvider(gate=gate)
    items.add(make_item("a"), make_item("b"))
    orchestrator = _orchestrator(items, provider, assets)

    first = await orchestrator.submit(["a"])
    while items.status("a") != ItemStatus.generating:
        await asyncio.sleep(0)
    first.task.cancel()
    await first.wait()
    assert provider.in_flight == 0

    second = await orchestrator.submit(["b"])
    while items.status("b") != ItemStatus.generating:
        await asyncio.sleep(0)
    gate.set()
    assert (await second.wait()).success

    assert provider.max_in_flight == 1
    assert ("synthesize", "X", "chinese") in provider.calls
    assert list(assets.blobs) == [asset_key("chinese", "b")]
    assert items.status("a") == ItemStatus.error


@pytest.mark.anyio
async def test_shutdown_fails_the_running_job(items, assets) -> None:
    provider = StubProvider(gate=asyncio.Event())
    items.add(make_item("a"), make_item("b"))
    orchestrator = _orchestrator(items, provider, assets)
    handle = await orchestrator.submit(["a", "b"])
    while items.status("a") != ItemStatus.generating:
        await asyncio.sleep(0)

    await orchestrator.shutdown()

    assert handle.task.done()
    assert provider.in_flight == 0
    assert items.status("a") == ItemStatus.error
    assert items.status("b") == ItemStatus.error
    assert not orchestrator.reconciler.guard.held
    await orchestrator.shutdown()


@pytest.mark.anyio
async def test_single_group_must_share_a_language(items, provider, assets) -> None:
    items.add(make_item("1", "猫", "chinese"), make_item("2", "gato", "spanish"))
    orchestrator = _orchestrator(items, provider, assets)

    with pytest.raises(JobRejected) as exc:
        await orchestrator.submit(["1", "2"], single_group)
    assert exc.value.reason == RejectionReason.MIXED_GROUP
    assert exc.value.status_code == 422
    assert items.history == []
    assert not orchestrator.reconciler.guard.held

    handle = await orchestrator.submit(["1", "2"], by_language)
    assert (await handle.wait()).success
    assert {c[2] for c in provider.calls} == {"chinese", "spanish"}

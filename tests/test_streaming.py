# tests/test_streaming.py
import json

import pytest

from core.streaming import EventStreamWriter, NdjsonDecoder, decode_stream, encode_event
from model.events import GroupComplete, GroupError, GroupProgress, GroupResult, ItemResult


def _sample_stream() -> bytes:
    ok = ItemResult(text="你好", success=True, resultText="X", resultAssetPath="/a/1")
    bad = ItemResult(text="adios", success=False, errorMessage="boom")
    events = [
        GroupProgress(processedInGroup=0, totalInGroup=2, currentItemText="你好"),
        GroupResult(processedInGroup=1, totalInGroup=2, item=ok),
        GroupProgress(processedInGroup=1, totalInGroup=2, currentItemText="adios"),
        GroupResult(processedInGroup=2, totalInGroup=2, item=bad),
        GroupComplete(processedInGroup=2, totalInGroup=2, allResults=[ok, bad]),
    ]
    return b"".join(encode_event(e) for e in events)


def test_encode_event_writes_one_compact_line_without_nulls() -> None:
    line = encode_event(GroupProgress(processedInGroup=0, totalInGroup=3))
    assert line.endswith(b"\n")
    assert line.count(b"\n") == 1
    assert json.loads(line) == {"type": "progress", "processedInGroup": 0, "totalInGroup": 3}


def test_decoder_output_does_not_depend_on_chunk_boundaries() -> None:
    raw = _sample_stream()
    whole = NdjsonDecoder()
    expected = whole.feed(raw) + whole.flush()
    assert [e.type for e in expected] == ["progress", "result", "progress", "result", "complete"]

    # Every split point, including ones inside a multi-byte character.
    for cut in range(1, len(raw)):
        decoder = NdjsonDecoder()
        got = decoder.feed(raw[:cut]) + decoder.feed(raw[cut:]) + decoder.flush()
        assert got == expected, f"split at byte {cut}"


def test_decoder_byte_by_byte() -> None:
    raw = _sample_stream()
    decoder = NdjsonDecoder()
    got = []
    for i in range(len(raw)):
        got.extend(decoder.feed(raw[i : i + 1]))
    got.extend(decoder.flush())
    assert len(got) == 5
    assert got[1].item.text == "你好"


def test_malformed_and_blank_lines_are_skipped() -> None:
    decoder = NdjsonDecoder()
    raw = (
        b'{"type":"progress","processedInGroup":0,"totalInGroup":1}\n'
        b"not json at all\n"
        b"\n"
        b'{"type":"mystery","value":1}\n'
        b'{"type":"result","processedInGroup":1}\n'
        b'{"type":"error","message":"quota exceeded"}\n'
    )
    events = decoder.feed(raw)
    assert [e.type for e in events] == ["progress", "error"]
    assert events[1].message == "quota exceeded"


def test_incomplete_tail_is_dropped_at_end_of_data() -> None:
    decoder = NdjsonDecoder()
    events = decoder.feed(b'{"type":"progress","processedInGroup":0,"totalInGroup":1}\n{"type":"res')
    assert len(events) == 1
    assert decoder.pending > 0
    assert decoder.flush() == []
    assert decoder.pending == 0


def test_complete_tail_without_newline_is_kept() -> None:
    decoder = NdjsonDecoder()
    assert decoder.feed(b'{"type":"error","message":"late"}') == []
    tail = decoder.flush()
    assert len(tail) == 1 and isinstance(tail[0], GroupError)


def test_error_event_accepts_legacy_error_key() -> None:
    decoder = NdjsonDecoder()
    (event,) = decoder.feed(b'{"type":"error","error":"OpenAI API key is not configured"}\n')
    assert isinstance(event, GroupError)
    assert event.message == "OpenAI API key is not configured"


@pytest.mark.anyio
async def test_writer_lifecycle_and_idempotent_close() -> None:
    writer = EventStreamWriter()
    assert await writer.write(GroupProgress(processedInGroup=0, totalInGroup=1))
    await writer.close()
    await writer.close()
    assert await writer.write(GroupError(message="too late")) is False
    assert writer.closed
    assert writer.written == 1

    chunks = [c async for c in writer.iter_bytes()]
    assert len(chunks) == 1
    assert json.loads(chunks[0])["type"] == "progress"


@pytest.mark.anyio
async def test_writer_refuses_writes_after_consumer_leaves() -> None:
    writer = EventStreamWriter()
    await writer.write(GroupProgress(processedInGroup=0, totalInGroup=2))
    stream = writer.iter_bytes()
    await stream.__anext__()
    await stream.aclose()
    assert writer.closed
    assert await writer.write(GroupProgress(processedInGroup=1, totalInGroup=2)) is False


@pytest.mark.anyio
async def test_decode_stream_over_async_chunks() -> None:
    raw = _sample_stream()

    async def chunks():
        for i in range(0, len(raw), 7):
            yield raw[i : i + 7]

    events = [e async for e in decode_stream(chunks())]
    assert [e.type for e in events] == ["progress", "result", "progress", "result", "complete"]
    assert events[-1].allResults[1].errorMessage == "boom"

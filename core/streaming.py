# core/streaming.py
import asyncio
import json
import logging
from typing import AsyncIterable, AsyncIterator, Dict, Final, List, Optional
from pydantic import BaseModel, TypeAdapter, ValidationError
from model.events import ProgressEvent

LINE_SEP: Final[str] = "\n"
NDJSON_MEDIA_TYPE: Final[str] = "application/x-ndjson"
logger = logging.getLogger(__name__)

_EVENTS: TypeAdapter[ProgressEvent] = TypeAdapter(ProgressEvent)
_EOF = object()


def ndjson_line(obj: Dict[str, object]) -> bytes:
    return (json.dumps(obj, separators=(",", ":"), ensure_ascii=False) + LINE_SEP).encode(
        "utf-8"
    )


def encode_event(event: BaseModel) -> bytes:
    return ndjson_line(event.model_dump(mode="json", exclude_none=True))


def parse_event(line: bytes) -> Optional[ProgressEvent]:
    """
    Decode one NDJSON record. Blank lines and records that are not a known
    event are logged and skipped, never raised.
    """
    line = line.strip()
    if not line:
        return None
    try:
        return _EVENTS.validate_json(line)
    except ValidationError as e:
        logger.warning(
            "stream.decode.skip bytes=%d errors=%d", len(line), e.error_count()
        )
        return None


class EventStreamWriter:
    """
    Encoder side of a group stream: open -> write* -> close.

    Events are queued as NDJSON bytes and drained by iter_bytes(), which is
    what a StreamingResponse (or an in-process decoder) consumes. close() is
    idempotent; writes after close, or after the consumer went away, are
    dropped and reported as False.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._written = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def written(self) -> int:
        return self._written

    async def write(self, event: BaseModel) -> bool:
        if self._closed:
            logger.debug("stream.write.after_close type=%s", getattr(event, "type", "?"))
            return False
        await self._queue.put(encode_event(event))
        self._written += 1
        return True

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_EOF)

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await self._queue.get()
                if chunk is _EOF:
                    return
                yield chunk
        finally:
            # Consumer finished or disconnected: stop accepting writes.
            self._closed = True


class NdjsonDecoder:
    """
    Incremental decoder for a byte transport that may split records anywhere.
    """

    def __init__(self) -> None:
        self._buffer = b""

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes | str) -> List[ProgressEvent]:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split(LINE_SEP.encode("utf-8"))
        out: List[ProgressEvent] = []
        for line in lines:
            event = parse_event(line)
            if event is not None:
                out.append(event)
        return out

    def flush(self) -> List[ProgressEvent]:
        """End of data: keep the tail only if it is a whole record."""
        tail, self._buffer = self._buffer, b""
        if not tail.strip():
            return []
        try:
            return [_EVENTS.validate_json(tail.strip())]
        except ValidationError:
            logger.debug("stream.decode.tail_dropped bytes=%d", len(tail))
            return []


async def decode_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[ProgressEvent]:
    decoder = NdjsonDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
    for event in decoder.flush():
        yield event

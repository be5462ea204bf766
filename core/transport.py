# core/transport.py
import logging
from contextlib import aclosing
from typing import AsyncIterator, Callable, Optional
import httpx
from config.languages import LanguageConfig, get_language_config
from config.settings import settings
from core.batch_runner import BatchRunner
from core.entities import GroupTransport, ItemGroup
from util.constants import InternalURIs
from util.errors import TransportError

logger = logging.getLogger(__name__)


class LocalTransport:
    """
    Runs the group on an in-process BatchRunner. The events still travel as
    encoded NDJSON so both ends speak the same wire format as over HTTP.
    """

    def __init__(
        self,
        runner: BatchRunner,
        config_of: Callable[[Optional[str]], Optional[LanguageConfig]] = get_language_config,
    ) -> None:
        self._runner = runner
        self._config_of = config_of

    async def open(self, group: ItemGroup) -> AsyncIterator[bytes]:
        config = self._config_of(group.config_key)
        async with aclosing(self._runner.stream(group.items, config)) as chunks:
            async for chunk in chunks:
                yield chunk


class HttpTransport:
    """Streams a group's events from a remote /generate-batch endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        # Reads wait on a full explain+synthesize round trip.
        read = 2 * (timeout or settings.PROVIDER_TIMEOUT_SECONDS)
        self._timeout = httpx.Timeout(read, connect=5.0)
        self._transport = transport

    async def open(self, group: ItemGroup) -> AsyncIterator[bytes]:
        payload = {"ids": group.ids, "groupKey": group.config_key}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                async with client.stream(
                    "POST", InternalURIs.GENERATE_BATCH, json=payload
                ) as res:
                    if res.status_code // 100 != 2:
                        logger.error("transport.http.bad_status status=%d", res.status_code)
                        raise TransportError(
                            f"Generation service responded with status {res.status_code}"
                        )
                    async for chunk in res.aiter_bytes():
                        yield chunk
        except httpx.HTTPError as e:
            logger.error("transport.http.error err=%s", type(e).__name__)
            raise TransportError(f"Generation stream failed: {type(e).__name__}") from e


def build_transport(runner: BatchRunner) -> GroupTransport:
    if settings.GENERATION_SERVICE_URL:
        logger.info("transport.remote url=%s", settings.GENERATION_SERVICE_URL)
        return HttpTransport(settings.GENERATION_SERVICE_URL)
    return LocalTransport(runner)

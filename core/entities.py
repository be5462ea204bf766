# core/entities.py
import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol
from config.languages import LanguageConfig
from model.item import Item
from model.job import JobOutcome


class GenerationProvider(Protocol):
    def ensure_configured(self) -> None: ...

    async def explain(self, text: str, config: LanguageConfig) -> str: ...

    async def synthesize(self, text: str, config: LanguageConfig) -> bytes: ...


class AssetStore(Protocol):
    async def put_audio(self, asset_id: str, data: bytes) -> str: ...


@dataclass
class ItemGroup:
    """
    One partition of a job: items sharing a grouping key, in request order.
    config_key selects the provider configuration (the first item's language).
    """

    key: Any
    items: List[Item]

    @property
    def ids(self) -> List[str]:
        return [i.id for i in self.items]

    @property
    def config_key(self) -> str:
        return self.items[0].groupKey

    def text_index(self) -> Dict[str, str]:
        return {i.text: i.id for i in self.items}


class GroupTransport(Protocol):
    def open(self, group: ItemGroup) -> AsyncIterator[bytes]: ...


@dataclass
class JobHandle:
    job_id: str
    groups: List[ItemGroup]
    started_at: datetime
    _outcome: "asyncio.Future[JobOutcome]" = field(repr=False)
    task: Optional["asyncio.Task[None]"] = field(default=None, repr=False)

    @property
    def item_ids(self) -> List[str]:
        return [i for g in self.groups for i in g.ids]

    @property
    def total(self) -> int:
        return sum(len(g.items) for g in self.groups)

    @property
    def done(self) -> bool:
        return self._outcome.done()

    def resolve(self, outcome: JobOutcome) -> None:
        if not self._outcome.done():
            self._outcome.set_result(outcome)

    async def wait(self) -> JobOutcome:
        return await asyncio.shield(self._outcome)

# tests/fakes.py
import asyncio
from typing import Dict, List, Optional, Sequence, Set, Tuple
from config.languages import LanguageConfig
from model.item import Item, ItemStatus
from util.errors import ProviderError, ProviderNotConfigured


def make_item(
    item_id: str,
    text: Optional[str] = None,
    lang: str = "chinese",
    status: ItemStatus = ItemStatus.idle,
) -> Item:
    return Item(id=item_id, text=text or item_id, groupKey=lang, status=status)


class InMemoryItemRepository:
    """Item store stand-in that also records every status write in order."""

    def __init__(self, seed: Sequence[Item] = ()) -> None:
        self._items: Dict[str, Item] = {i.id: i for i in seed}
        self.history: List[Tuple[str, ItemStatus]] = []

    def add(self, *items: Item) -> None:
        for item in items:
            self._items[item.id] = item

    async def get(self, item_id: str) -> Optional[Item]:
        return self._items.get(item_id)

    async def get_many(self, item_ids: Sequence[str]) -> List[Item]:
        return [self._items[i] for i in item_ids if i in self._items]

    async def set(self, item: Item) -> None:
        self._items[item.id] = item
        self.history.append((item.id, item.status))

    async def delete(self, item_id: str) -> int:
        return 1 if self._items.pop(item_id, None) is not None else 0

    async def all(self) -> List[Item]:
        return sorted(self._items.values(), key=lambda i: i.createdAt)

    def status(self, item_id: str) -> ItemStatus:
        return self._items[item_id].status

    def item(self, item_id: str) -> Item:
        return self._items[item_id]


class InMemoryAssetRepository:
    def __init__(self) -> None:
        self.blobs: Dict[str, bytes] = {}

    async def put_audio(self, asset_id: str, data: bytes) -> str:
        self.blobs[asset_id] = data
        return f"/api/v1/assets/{asset_id}"

    async def get_audio(self, asset_id: str) -> Optional[bytes]:
        return self.blobs.get(asset_id)

    async def delete(self, asset_id: str) -> int:
        return 1 if self.blobs.pop(asset_id, None) is not None else 0


class StubProvider:
    """
    Deterministic provider. Texts in `fail_on` fail at explain; when `gate`
    is set every explain call waits for it.
    """

    def __init__(
        self,
        *,
        explanation: str = "X",
        audio: bytes = b"ID3fake-mp3",
        fail_on: Set[str] = frozenset(),
        configured: bool = True,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.explanation = explanation
        self.audio = audio
        self.fail_on = set(fail_on)
        self.configured = configured
        self.gate = gate
        self.calls: List[Tuple[str, str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ProviderNotConfigured("OpenAI API key is not configured")

    async def explain(self, text: str, config: LanguageConfig) -> str:
        self.calls.append(("explain", text, config.code))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            await asyncio.sleep(0)
            if text in self.fail_on:
                raise ProviderError(f"explain failed for {text}")
            return self.explanation
        finally:
            self.in_flight -= 1

    async def synthesize(self, text: str, config: LanguageConfig) -> bytes:
        self.calls.append(("synthesize", text, config.code))
        return self.audio

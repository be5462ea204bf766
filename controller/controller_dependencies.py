# controller/controller_dependencies.py
from typing import Optional
from fastapi import Depends
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from core.batch_runner import BatchRunner
from core.openai_client import OpenAIProvider
from core.orchestrator import BatchOrchestrator
from core.reconciler import JobReconciler
from core.transport import build_transport
from repository.asset_repository import AssetRepository
from repository.item_repository import ItemRepository
from service.generation_service import GenerationService
from service.item_service import ItemService

rate_limiter = RateLimiter(
    times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
)

# One orchestrator per process: it owns the single-flight guard.
_orchestrator: Optional[BatchOrchestrator] = None


def get_item_repository() -> ItemRepository:
    return ItemRepository()


def get_asset_repository() -> AssetRepository:
    return AssetRepository()


def get_provider() -> OpenAIProvider:
    return OpenAIProvider()


def get_batch_runner(
    provider: OpenAIProvider = Depends(get_provider),
    assets: AssetRepository = Depends(get_asset_repository),
) -> BatchRunner:
    return BatchRunner(provider, assets)


def get_generation_service(
    items: ItemRepository = Depends(get_item_repository),
    runner: BatchRunner = Depends(get_batch_runner),
) -> GenerationService:
    return GenerationService(items, runner)


def get_item_service(
    items: ItemRepository = Depends(get_item_repository),
    assets: AssetRepository = Depends(get_asset_repository),
) -> ItemService:
    return ItemService(items, assets)


def get_batch_orchestrator() -> BatchOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        runner = BatchRunner(OpenAIProvider(), AssetRepository())
        _orchestrator = BatchOrchestrator(
            JobReconciler(ItemRepository()), build_transport(runner)
        )
    return _orchestrator

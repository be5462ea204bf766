# controller/generation_controller.py
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, Response, StreamingResponse
from controller.controller_dependencies import (
    get_asset_repository,
    get_generation_service,
    rate_limiter,
)
from core.streaming import NDJSON_MEDIA_TYPE
from model.api import GenerateBatchRequest, GenerateItemRequest, GenerateItemResponse
from repository.asset_repository import AssetRepository
from service.generation_service import GenerationService
from util.constants import InternalURIs
from util.enums import ErrorMessage
from util.errors import AppError

generation_router = APIRouter(dependencies=[Depends(rate_limiter)])
asset_router = APIRouter()


@generation_router.post(InternalURIs.GENERATE_BATCH)
async def generate_batch(
    payload: GenerateBatchRequest,
    service: GenerationService = Depends(get_generation_service),
):
    generator = service.stream_batch(payload.ids, payload.groupKey)
    return StreamingResponse(
        generator,
        media_type=NDJSON_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@generation_router.post(InternalURIs.GENERATE, response_model=GenerateItemResponse)
async def generate_item(
    payload: GenerateItemRequest,
    service: GenerationService = Depends(get_generation_service),
):
    result = await service.generate_one(payload.id)
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=result.model_dump(exclude_none=True),
        )
    return result


@asset_router.get(InternalURIs.ASSET)
async def get_asset(
    asset_id: str, assets: AssetRepository = Depends(get_asset_repository)
) -> Response:
    data = await assets.get_audio(asset_id)
    if data is None:
        raise AppError(
            ErrorMessage.ASSET_NOT_FOUND.value.message,
            ErrorMessage.ASSET_NOT_FOUND.value.http_status,
        )
    return Response(content=data, media_type="audio/mpeg")

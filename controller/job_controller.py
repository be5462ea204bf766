# controller/job_controller.py
from fastapi import APIRouter, Depends, status
from controller.controller_dependencies import get_batch_orchestrator, rate_limiter
from core.orchestrator import BatchOrchestrator, by_language, single_group
from model.api import SubmitJobRequest, SubmitJobResponse
from model.job import BatchState
from util.constants import InternalURIs

job_router = APIRouter()


@job_router.post(
    InternalURIs.JOBS,
    response_model=SubmitJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(rate_limiter)],
)
async def submit_job(
    payload: SubmitJobRequest,
    orchestrator: BatchOrchestrator = Depends(get_batch_orchestrator),
) -> SubmitJobResponse:
    key_of = by_language if payload.groupBy == "language" else single_group
    handle = await orchestrator.submit(payload.ids, key_of)
    return SubmitJobResponse(
        jobId=handle.job_id, totalRequested=handle.total, groups=len(handle.groups)
    )


# Polled by the UI, so it stays outside the rate limit.
@job_router.get(InternalURIs.CURRENT_JOB, response_model=BatchState)
async def current_job(
    orchestrator: BatchOrchestrator = Depends(get_batch_orchestrator),
) -> BatchState:
    return orchestrator.reconciler.state

# model/job.py
from datetime import datetime
from pydantic import BaseModel


class BatchState(BaseModel):
    """
    Aggregate progress across every group of the current job. Lives only in
    memory and drops back to the zero state shortly after the job ends.
    """

    jobId: str | None = None
    running: bool = False
    totalRequested: int = 0
    totalProcessed: int = 0
    successful: int = 0
    failed: int = 0
    currentItemText: str | None = None
    startedAt: datetime | None = None
    estimatedSecondsRemaining: float | None = None


class JobOutcome(BaseModel):
    jobId: str
    success: bool
    successful: int = 0
    failed: int = 0
    errorMessage: str | None = None

# model/api.py
from pydantic import BaseModel, Field
from util.types import GroupBy


class CreateItemRequest(BaseModel):
    text: str = Field(min_length=1)
    groupKey: str | None = None


class GenerateBatchRequest(BaseModel):
    ids: list[str]
    groupKey: str | None = None


class GenerateItemRequest(BaseModel):
    id: str = Field(min_length=1)


class GenerateItemResponse(BaseModel):
    success: bool
    resultAssetPath: str | None = None
    resultText: str | None = None
    errorMessage: str | None = None


class SubmitJobRequest(BaseModel):
    ids: list[str]
    groupBy: GroupBy = "language"


class SubmitJobResponse(BaseModel):
    jobId: str
    totalRequested: int
    groups: int

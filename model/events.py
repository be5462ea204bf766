# model/events.py
from typing import Annotated, List, Literal, Union
from pydantic import AliasChoices, BaseModel, Field


class ItemResult(BaseModel):
    text: str
    success: bool
    resultText: str | None = None
    resultAssetPath: str | None = None
    errorMessage: str | None = None


class GroupProgress(BaseModel):
    type: Literal["progress"] = "progress"
    processedInGroup: int
    totalInGroup: int
    currentItemText: str | None = None


class GroupResult(BaseModel):
    type: Literal["result"] = "result"
    processedInGroup: int
    totalInGroup: int
    item: ItemResult


class GroupComplete(BaseModel):
    type: Literal["complete"] = "complete"
    processedInGroup: int
    totalInGroup: int
    allResults: List[ItemResult]


class GroupError(BaseModel):
    type: Literal["error"] = "error"
    # Older producers wrote the message under "error".
    message: str = Field(validation_alias=AliasChoices("message", "error"))


ProgressEvent = Annotated[
    Union[GroupProgress, GroupResult, GroupComplete, GroupError],
    Field(discriminator="type"),
]

TerminalEvent = (GroupComplete, GroupError)

# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    ITEM_NOT_FOUND = ErrorInfo("Unknown item id", status.HTTP_404_NOT_FOUND)
    ITEM_IN_FLIGHT = ErrorInfo(
        "Item is already queued for generation", status.HTTP_409_CONFLICT
    )
    ASSET_NOT_FOUND = ErrorInfo("Unknown asset id", status.HTTP_404_NOT_FOUND)
    UNSUPPORTED_LANGUAGE = ErrorInfo("Unsupported language", 422)
    PROVIDER_NOT_CONFIGURED = ErrorInfo(
        "OpenAI API key is not configured", status.HTTP_503_SERVICE_UNAVAILABLE
    )
    MIXED_GROUP = ErrorInfo("Items in one group must share a language", 422)


class RejectionReason(str, Enum):
    ALREADY_RUNNING = "already_running"
    EMPTY_REQUEST = "empty_request"
    NO_VALID_ITEMS = "no_valid_items"
    DUPLICATE_TEXT = "duplicate_text"
    ITEM_IN_FLIGHT = "item_in_flight"
    MIXED_GROUP = "mixed_group"

# util/errors.py
from fastapi import HTTPException, status
from util.enums import RejectionReason


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)


_REJECTION_STATUS = {
    RejectionReason.ALREADY_RUNNING: status.HTTP_409_CONFLICT,
    RejectionReason.EMPTY_REQUEST: status.HTTP_400_BAD_REQUEST,
    RejectionReason.NO_VALID_ITEMS: status.HTTP_400_BAD_REQUEST,
    RejectionReason.DUPLICATE_TEXT: 422,
    RejectionReason.ITEM_IN_FLIGHT: status.HTTP_409_CONFLICT,
    RejectionReason.MIXED_GROUP: 422,
}


class JobRejected(AppError):
    """
    Batch admission refused. Raised before any item or batch state is touched.
    """

    def __init__(self, reason: RejectionReason, message: str) -> None:
        super().__init__(message, _REJECTION_STATUS[reason])
        self.reason = reason
        self.message = message
        self.detail = {"ok": False, "error": reason.value, "message": message}


class ProviderError(Exception):
    """Raised by the generation provider for any failed upstream call."""


class ProviderNotConfigured(ProviderError):
    pass


class TransportError(Exception):
    """The progress stream for a group broke before a terminal event."""

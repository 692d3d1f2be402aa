from enum import Enum
from typing import Dict


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    # The kinds below are reported as result statuses, not raised to callers.
    DATA_INCOMPLETE = "DATA_INCOMPLETE"
    CALCULATION_FAILURE = "CALCULATION_FAILURE"
    NO_BENCHMARK = "NO_BENCHMARK"
    QUEUED = "QUEUED"


# HTTP status per error kind, used by the API exception handler.
STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 422,
    ErrorKind.CONFLICT: 409,
    ErrorKind.DATA_INCOMPLETE: 422,
    ErrorKind.CALCULATION_FAILURE: 500,
    ErrorKind.NO_BENCHMARK: 422,
    ErrorKind.QUEUED: 202,
}


class HomeScoreError(Exception):
    kind: ErrorKind = ErrorKind.CALCULATION_FAILURE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


class NotFoundError(HomeScoreError):
    """Property is missing or not owned by the caller."""

    kind = ErrorKind.NOT_FOUND


class ValidationError(HomeScoreError):
    kind = ErrorKind.VALIDATION


class ConflictError(HomeScoreError):
    kind = ErrorKind.CONFLICT

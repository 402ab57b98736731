from pydantic import BaseModel

from src.error_codes import FETCH_TRANSIENT, STORAGE_WRITE_FAIL


class NetworkError(Exception):
    """Raised when a feed page cannot be fetched (non-OK status, transport failure, bad payload)."""

    def __init__(self, message: str, *, code: str = FETCH_TRANSIENT, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


class PersistenceError(Exception):
    """Raised when local storage cannot be read or written. Never fatal."""

    def __init__(self, message: str, *, code: str = STORAGE_WRITE_FAIL):
        super().__init__(message)
        self.message = message
        self.code = code


class ProblemDetails(BaseModel):
    status: int
    code: str
    message: str
    request_id: str


def problem(*, status: int, code: str, message: str, request_id: str) -> ProblemDetails:
    return ProblemDetails(status=status, code=code, message=message, request_id=request_id)

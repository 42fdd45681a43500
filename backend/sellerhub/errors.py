from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Every failure the marketplace connection flow can report to a client."""

    UNAUTHENTICATED = "unauthenticated"
    CONFIGURATION = "configuration"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    INVALID_CALLBACK = "invalid_callback"
    EXPIRED_OR_UNKNOWN_STATE = "expired_or_unknown_state"
    UPSTREAM_EXCHANGE_FAILURE = "upstream_exchange_failure"
    PERSISTENCE_FAILURE = "persistence_failure"
    NOT_CONNECTED = "not_connected"
    REFRESH_FAILED = "refresh_failed"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE


_STATUS_CODES = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.STORAGE_UNAVAILABLE: 500,
    ErrorKind.INVALID_CALLBACK: 400,
    ErrorKind.EXPIRED_OR_UNKNOWN_STATE: 400,
    ErrorKind.UPSTREAM_EXCHANGE_FAILURE: 500,
    ErrorKind.PERSISTENCE_FAILURE: 500,
    ErrorKind.NOT_CONNECTED: 404,
    ErrorKind.REFRESH_FAILED: 502,
}

_RETRYABLE = {
    ErrorKind.STORAGE_UNAVAILABLE,
    ErrorKind.UPSTREAM_EXCHANGE_FAILURE,
    ErrorKind.REFRESH_FAILED,
}


class MeliOAuthError(Exception):
    """
    Raised at every component boundary of the Mercado Livre connection flow.
    `status_code` defaults to the kind's status; refresh failures carry the
    upstream status instead.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: Optional[Any] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details
        self.status_code = status_code or kind.status_code

    def to_dict(self) -> dict:
        body = {"error": self.message, "kind": self.kind.value}
        if self.details is not None:
            body["details"] = self.details
        return body

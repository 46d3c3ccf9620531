# src/taskboard/core/results.py

"""
Typed outcomes for remote calls.

Every call site that talks to the backend catches the exception, logs it and
returns one of these instead of raising. Nothing here retries: "retryable"
only tells the caller that trying again later could succeed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T = None  # type: ignore[assignment]

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class RetryableError:
    message: str
    cause: BaseException | None = None

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class FatalError:
    message: str
    cause: BaseException | None = None

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], RetryableError, FatalError]


_CONNECTION_ERRORS = {
    "ConnectError",
    "ConnectTimeout",
    "ReadTimeout",
    "WriteTimeout",
    "PoolTimeout",
    "TimeoutException",
    "RemoteProtocolError",
    "NetworkError",
    "ConnectionClosed",
    "ConnectionClosedError",
    "InvalidStatus",
}

_AUTH_ERRORS = {
    "AuthApiError",
    "AuthInvalidCredentialsError",
    "AuthSessionMissingError",
    "PermissionError",
}


def _status_code(exc: BaseException) -> int | None:
    for attr in ("status_code", "status", "code"):
        raw = getattr(exc, attr, None)
        if raw is None:
            continue
        try:
            return int(raw)
        except (TypeError, ValueError):
            continue
    response = getattr(exc, "response", None)
    raw = getattr(response, "status_code", None)
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def _is_connection_error(exc: BaseException) -> bool:
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True
    return any(cls.__name__ in _CONNECTION_ERRORS for cls in type(exc).__mro__)


def _is_auth_error(exc: BaseException) -> bool:
    return any(cls.__name__ in _AUTH_ERRORS for cls in type(exc).__mro__)


def describe_error(exc: BaseException) -> str:
    msg = getattr(exc, "message", None) or str(exc)
    msg = str(msg).strip()
    return msg or exc.__class__.__name__


def classify_error(exc: BaseException) -> RetryableError | FatalError:
    """
    Map an SDK/transport exception onto the two error kinds.

    - network/timeout, HTTP 429 and 5xx -> retryable
    - auth, other 4xx, validation and anything unknown -> fatal
    """
    message = describe_error(exc)

    if _is_auth_error(exc):
        return FatalError(message, exc)

    if _is_connection_error(exc):
        return RetryableError(message, exc)

    status = _status_code(exc)
    if status is not None and (status == 429 or 500 <= status < 600):
        return RetryableError(message, exc)

    return FatalError(message, exc)

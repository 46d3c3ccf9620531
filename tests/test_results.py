# tests/test_results.py

from __future__ import annotations

from taskboard.core.results import FatalError, Ok, RetryableError, classify_error, describe_error


class ConnectError(Exception):
    """Named like the httpx transport error."""


class AuthApiError(Exception):
    pass


class APIError(Exception):
    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class HTTPStatus(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def test_transport_errors_are_retryable() -> None:
    assert isinstance(classify_error(ConnectError("refused")), RetryableError)
    assert isinstance(classify_error(ConnectionResetError()), RetryableError)
    assert isinstance(classify_error(TimeoutError()), RetryableError)


def test_server_side_and_rate_limit_are_retryable() -> None:
    assert isinstance(classify_error(HTTPStatus(503)), RetryableError)
    assert isinstance(classify_error(HTTPStatus(429)), RetryableError)


def test_auth_and_client_errors_are_fatal() -> None:
    assert isinstance(classify_error(AuthApiError("invalid login")), FatalError)
    assert isinstance(classify_error(HTTPStatus(404)), FatalError)
    assert isinstance(classify_error(APIError("violates row-level security", code="42501")), FatalError)
    assert isinstance(classify_error(APIError("bad", code="PGRST116")), FatalError)
    assert isinstance(classify_error(ValueError("nope")), FatalError)


def test_error_keeps_message_and_cause() -> None:
    exc = APIError("duplicate key value")
    err = classify_error(exc)
    assert err.message == "duplicate key value"
    assert err.cause is exc
    assert describe_error(RuntimeError()) == "RuntimeError"


def test_ok_and_kinds() -> None:
    assert Ok().ok is True
    assert Ok(3).value == 3
    assert RetryableError("x").ok is False

r"""Unit tests for the retry policies and the default transient error
classifier."""

from __future__ import annotations

import errno
import socket
from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from aretry.config import RETRY_STATUS_CODES
from aretry.policy import (
    TransientErrorClassifier,
    always_retry,
    default_retry_policy,
    extract_error_codes,
    extract_status_codes,
    never_retry,
)


class ApiError(Exception):
    """Error carrying arbitrary attributes, like SDK errors do."""

    def __init__(self, message: str = "api error", **attributes: Any) -> None:
        super().__init__(message)
        for name, value in attributes.items():
            setattr(self, name, value)


def make_http_status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.example.com/data")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(
        f"Server error '{status_code}'", request=request, response=response
    )


##########################################
#     Tests for extract_status_codes     #
##########################################


@pytest.mark.parametrize("field", ["status_code", "status", "statusCode"])
def test_extract_status_codes_direct_field(field: str) -> None:
    assert extract_status_codes(ApiError(**{field: 503})) == [503]


@pytest.mark.parametrize("field", ["http_status_code", "httpStatusCode", "status_code"])
def test_extract_status_codes_metadata_object(field: str) -> None:
    error = ApiError(metadata=SimpleNamespace(**{field: 429}))
    assert extract_status_codes(error) == [429]


def test_extract_status_codes_metadata_mapping() -> None:
    assert extract_status_codes(ApiError(metadata={"httpStatusCode": 502})) == [502]


def test_extract_status_codes_response_object() -> None:
    assert extract_status_codes(make_http_status_error(504)) == [504]


def test_extract_status_codes_response_mapping() -> None:
    error = ApiError(response={"ResponseMetadata": {"HTTPStatusCode": 500}})
    assert extract_status_codes(error) == [500]


def test_extract_status_codes_ignores_non_integers() -> None:
    error = ApiError(status="FAILED", status_code=True, metadata={"status_code": "500"})
    assert extract_status_codes(error) == []


def test_extract_status_codes_none() -> None:
    assert extract_status_codes(ValueError("invalid email")) == []


#########################################
#     Tests for extract_error_codes     #
#########################################


def test_extract_error_codes_class_names() -> None:
    codes = extract_error_codes(ConnectionResetError("reset"))
    assert {"ConnectionResetError", "ConnectionError", "OSError", "Exception"} <= codes


@pytest.mark.parametrize("attr", ["code", "error_code", "name"])
def test_extract_error_codes_attributes(attr: str) -> None:
    assert "SlowDown" in extract_error_codes(ApiError(**{attr: "SlowDown"}))


def test_extract_error_codes_ignores_non_string_code() -> None:
    assert "503" not in extract_error_codes(ApiError(code=503))


@pytest.mark.parametrize(
    ("number", "name"),
    [
        (errno.ECONNRESET, "ECONNRESET"),
        (errno.ETIMEDOUT, "ETIMEDOUT"),
        (errno.ECONNREFUSED, "ECONNREFUSED"),
        (errno.EPIPE, "EPIPE"),
    ],
)
def test_extract_error_codes_errno(number: int, name: str) -> None:
    assert name in extract_error_codes(OSError(number, "os error"))


@pytest.mark.parametrize(
    ("number", "name"),
    [(socket.EAI_AGAIN, "EAI_AGAIN"), (socket.EAI_NONAME, "EAI_NONAME")],
)
def test_extract_error_codes_gaierror(number: int, name: str) -> None:
    assert name in extract_error_codes(socket.gaierror(number, "name resolution failed"))


def test_extract_error_codes_botocore_style_response() -> None:
    error = ApiError(response={"Error": {"Code": "ThrottlingException", "Message": "Rate exceeded"}})
    assert "ThrottlingException" in extract_error_codes(error)


def test_extract_error_codes_httpx_timeout() -> None:
    assert "TimeoutError" in extract_error_codes(httpx.ReadTimeout("timed out"))


##############################################
#     Tests for TransientErrorClassifier     #
##############################################


@pytest.mark.parametrize("status_code", RETRY_STATUS_CODES)
def test_default_policy_retryable_status_codes(status_code: int) -> None:
    assert default_retry_policy(ApiError(status_code=status_code))
    assert default_retry_policy(make_http_status_error(status_code))


@pytest.mark.parametrize("status_code", [400, 401, 403, 404, 409, 422, 501])
def test_default_policy_non_retryable_status_codes(status_code: int) -> None:
    assert not default_retry_policy(ApiError(status_code=status_code))
    assert not default_retry_policy(make_http_status_error(status_code))


@pytest.mark.parametrize(
    "code",
    [
        "ETIMEOUT",
        "ETIMEDOUT",
        "ECONNRESET",
        "EAI_AGAIN",
        "EAI_NONAME",
        "ENOTFOUND",
        "ECONNREFUSED",
        "EPIPE",
        "Throttling",
        "ThrottlingException",
        "TooManyRequestsException",
        "SlowDown",
        "RequestTimeout",
        "RequestTimeoutException",
    ],
)
def test_default_policy_retryable_codes(code: str) -> None:
    assert default_retry_policy(ApiError(code=code))


@pytest.mark.parametrize(
    "error",
    [
        TimeoutError("timed out"),
        ConnectionResetError("reset by peer"),
        ConnectionRefusedError("refused"),
        BrokenPipeError("broken pipe"),
        OSError(errno.ECONNRESET, "reset by peer"),
        OSError(errno.ETIMEDOUT, "connection timed out"),
        socket.gaierror(socket.EAI_AGAIN, "Temporary failure in name resolution"),
        socket.gaierror(socket.EAI_NONAME, "Name or service not known"),
        httpx.ConnectTimeout("connect timeout"),
        httpx.ReadTimeout("read timeout"),
        httpx.PoolTimeout("pool timeout"),
    ],
    ids=lambda error: type(error).__name__,
)
def test_default_policy_retryable_errors(error: BaseException) -> None:
    assert default_retry_policy(error)


@pytest.mark.parametrize(
    "error",
    [
        ValueError("invalid email"),
        ApiError("validation failed", code="ValidationError", status_code=422),
        KeyError("missing"),
        OSError(errno.ENOENT, "no such file"),
        httpx.ConnectError("connection failed"),
        httpx.UnsupportedProtocol("unsupported"),
    ],
    ids=lambda error: type(error).__name__,
)
def test_default_policy_non_retryable_errors(error: BaseException) -> None:
    assert not default_retry_policy(error)


def test_default_policy_follows_cause() -> None:
    error = httpx.ConnectError("connection failed")
    error.__cause__ = ConnectionRefusedError(errno.ECONNREFUSED, "refused")
    assert default_retry_policy(error)


def test_default_policy_ignores_implicit_context() -> None:
    error = ValueError("invalid email")
    error.__context__ = TimeoutError("timed out")
    assert not default_retry_policy(error)


def test_default_policy_cause_cycle() -> None:
    first = ValueError("first")
    second = ValueError("second")
    first.__cause__ = second
    second.__cause__ = first
    assert not default_retry_policy(first)


def test_default_policy_cause_depth_is_bounded() -> None:
    error = ValueError("root")
    current = error
    for _ in range(20):
        cause = ValueError("wrapped")
        current.__cause__ = cause
        current = cause
    current.__cause__ = TimeoutError("too deep")
    assert not default_retry_policy(error)


def test_classifier_custom_codes() -> None:
    classifier = TransientErrorClassifier(
        error_codes=frozenset({"LockTimeout"}), status_codes=(409,)
    )
    assert classifier(ApiError(code="LockTimeout"))
    assert classifier(ApiError(status_code=409))
    assert not classifier(ApiError(status_code=503))
    assert not classifier(TimeoutError("timed out"))


def test_classifier_is_transient_ignores_cause() -> None:
    error = ValueError("wrapper")
    error.__cause__ = TimeoutError("timed out")
    assert not default_retry_policy.is_transient(error)


def test_classifier_equality() -> None:
    assert TransientErrorClassifier() == default_retry_policy


#########################################
#     Tests for predicate helpers       #
#########################################


def test_always_retry() -> None:
    assert always_retry(ValueError("invalid email"))


def test_never_retry() -> None:
    assert not never_retry(TimeoutError("timed out"))

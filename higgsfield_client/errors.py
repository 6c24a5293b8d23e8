import asyncio
import errno
import socket
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import aiohttp

DEFAULT_DETAIL_MESSAGE = "Check your input params"

Detail = Union[str, List[Dict[str, Any]], None]


class ErrorKind(str, Enum):
    authentication = "authentication"
    not_enough_credits = "not_enough_credits"
    validation = "validation"
    bad_input = "bad_input"
    api = "api"
    timeout = "timeout"
    credentials_missing = "credentials_missing"
    unsupported_environment = "unsupported_environment"


class HiggsfieldError(Exception):
    """Base class for every error raised by the SDK.

    Each variant is a direct subclass tagged with an ``ErrorKind``; the
    variant-specific payload lives in ``status_code``, ``response_data`` and
    ``details``.
    """

    kind: Optional[ErrorKind] = None

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Any = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data
        self.details = details


class AuthenticationError(HiggsfieldError):
    kind = ErrorKind.authentication

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


class NotEnoughCreditsError(HiggsfieldError):
    kind = ErrorKind.not_enough_credits

    def __init__(self):
        super().__init__("Not enough credits", status_code=403)


def format_detail(detail: Detail) -> str:
    """Render a server ``detail`` field as a single message.

    A list of ``{"loc": [...], "msg": ...}`` entries becomes
    ``"a.b.c: msg, d: msg"``; a string is used as is.
    """
    if isinstance(detail, list):
        return ", ".join(
            f"{'.'.join(str(part) for part in item.get('loc', []))}: {item.get('msg', '')}"
            for item in detail
        )
    if isinstance(detail, str):
        return detail
    return DEFAULT_DETAIL_MESSAGE


class ValidationError(HiggsfieldError):
    kind = ErrorKind.validation

    def __init__(self, detail: Detail = None):
        super().__init__(
            format_detail(detail),
            status_code=422,
            details=detail if isinstance(detail, list) else None,
        )


class BadInputError(HiggsfieldError):
    kind = ErrorKind.bad_input

    def __init__(self, detail: Detail = None):
        super().__init__(
            format_detail(detail),
            status_code=400,
            details=detail if isinstance(detail, list) else None,
        )


class APIError(HiggsfieldError):
    kind = ErrorKind.api

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Any = None,
    ):
        super().__init__(message, status_code=status_code, response_data=response_data)


class PollingTimeoutError(HiggsfieldError, TimeoutError):
    kind = ErrorKind.timeout

    def __init__(self, max_poll_time: float):
        super().__init__(f"Polling exceeded maximum time of {max_poll_time}s")
        self.max_poll_time = max_poll_time


class CredentialsMissedError(HiggsfieldError):
    kind = ErrorKind.credentials_missing

    def __init__(self):
        super().__init__(
            "API credentials not found. Set HF_CREDENTIALS (or HF_KEY) environment "
            'variable with format "KEY_ID:KEY_SECRET", or set HF_API_KEY and '
            "HF_API_SECRET environment variables, or pass them in config."
        )


class UnsupportedEnvironmentError(HiggsfieldError):
    kind = ErrorKind.unsupported_environment

    def __init__(self):
        super().__init__(
            "This SDK is not supported in browser environments. "
            "Please use it from a regular Python interpreter."
        )


def classify_response(
    status: int, body: Any, message: Optional[str] = None
) -> HiggsfieldError:
    """Map a failed HTTP response onto exactly one SDK error."""
    detail = body.get("detail") if isinstance(body, dict) else None

    if status == 401:
        return AuthenticationError("Invalid API credentials")
    if status == 403:
        return NotEnoughCreditsError()
    if status == 422:
        return ValidationError(detail)
    if status == 400:
        return BadInputError(detail)
    return APIError(
        message or f"Request failed with status code {status}",
        status_code=status,
        response_data=body,
    )


def is_server_error(error: BaseException) -> bool:
    """True for a failure that carries an HTTP status of 500 or above."""
    if isinstance(error, HiggsfieldError):
        return error.kind is ErrorKind.api and (error.status_code or 0) >= 500
    if isinstance(error, aiohttp.ClientResponseError):
        return error.status >= 500
    return False


def is_retryable(error: BaseException) -> bool:
    """Transient failures: connection reset, connection timeout, DNS resolution and 5xx."""
    if isinstance(error, (HiggsfieldError, aiohttp.ClientResponseError)):
        return is_server_error(error)
    if isinstance(error, aiohttp.ClientSSLError):
        return False
    if isinstance(
        error,
        (
            ConnectionResetError,
            aiohttp.ServerDisconnectedError,
            asyncio.TimeoutError,
            TimeoutError,
        ),
    ):
        return True
    if isinstance(error, aiohttp.ClientConnectorError) and isinstance(
        error.os_error, (socket.gaierror, TimeoutError)
    ):
        return True
    return isinstance(error, OSError) and error.errno in (errno.ECONNRESET, errno.ETIMEDOUT)

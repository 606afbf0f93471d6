"""Remote transform errors and their classification.

Provider failures are converted to one of three kinds at the call boundary
so the processor never has to inspect free-form messages.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

try:
    import openai
except ImportError:
    openai = None

try:
    import anthropic
except ImportError:
    anthropic = None

import requests


class ErrorKind(str, Enum):
    """Structured classification of a remote failure."""
    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"
    FATAL = "fatal"


class RemoteTransformError(Exception):
    """Raised when a remote solve call fails."""

    kind = ErrorKind.FATAL

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransientTransformError(RemoteTransformError):
    """Raised on timeouts, connection failures and 5xx responses."""
    kind = ErrorKind.TRANSIENT


class RateLimitError(RemoteTransformError):
    """Raised when the remote service rejects a call for rate or quota limits."""
    kind = ErrorKind.RATE_LIMITED


# Last-resort signifiers for providers that only report limits in text
RATE_LIMIT_PATTERN = re.compile(
    r"rate[\s_-]?limit|quota|\b429\b|too many requests|resource[\s_]?exhausted",
    re.IGNORECASE,
)


def _status_code(exc: BaseException) -> Optional[int]:
    code = getattr(exc, "status_code", None)
    if isinstance(code, int):
        return code
    response = getattr(exc, "response", None)
    code = getattr(response, "status_code", None)
    return code if isinstance(code, int) else None


def _sdk_types(name: str) -> tuple:
    types = []
    for module in (openai, anthropic):
        cls = getattr(module, name, None) if module is not None else None
        if isinstance(cls, type):
            types.append(cls)
    return tuple(types)


def classify_error(exc: BaseException) -> ErrorKind:
    """Classify any remote failure into an ErrorKind."""
    if isinstance(exc, RemoteTransformError):
        return exc.kind

    rate_limit_types = _sdk_types("RateLimitError")
    if rate_limit_types and isinstance(exc, rate_limit_types):
        return ErrorKind.RATE_LIMITED

    status = _status_code(exc)
    if status == 429:
        return ErrorKind.RATE_LIMITED

    if RATE_LIMIT_PATTERN.search(str(exc)):
        return ErrorKind.RATE_LIMITED

    transient_types = _sdk_types("APIConnectionError") + _sdk_types("APITimeoutError") + _sdk_types("InternalServerError")
    if transient_types and isinstance(exc, transient_types):
        return ErrorKind.TRANSIENT
    if isinstance(exc, (requests.exceptions.Timeout, requests.exceptions.ConnectionError, TimeoutError, ConnectionError)):
        return ErrorKind.TRANSIENT
    if status is not None and status >= 500:
        return ErrorKind.TRANSIENT

    return ErrorKind.FATAL


def as_transform_error(exc: BaseException, context: str = "") -> RemoteTransformError:
    """Wrap an arbitrary exception in the matching RemoteTransformError subclass."""
    if isinstance(exc, RemoteTransformError):
        return exc
    kind = classify_error(exc)
    message = f"{context}: {exc}" if context else str(exc)
    status = _status_code(exc)
    if kind == ErrorKind.RATE_LIMITED:
        return RateLimitError(message, status_code=status)
    if kind == ErrorKind.TRANSIENT:
        return TransientTransformError(message, status_code=status)
    return RemoteTransformError(message, status_code=status)

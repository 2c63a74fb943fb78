"""Exception hierarchy and response classification for the esa client."""

from __future__ import annotations

import enum
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import httpx

from esa.models import ErrorPayload, Rate
from esa.services.sanitizer import sanitize_url

if TYPE_CHECKING:
    from esa.response import Response

SUCCESS_STATUSES = frozenset({200, 201, 204})
TOO_MANY_REQUESTS = 429


class ErrorKind(str, enum.Enum):
    """Tag identifying which failure an :class:`EsaError` represents."""

    ENCODING = "encoding"
    TRANSPORT = "transport"
    CANCELED = "canceled"
    HTTP = "http"
    RATE_LIMIT = "rate_limit"
    DECODE = "decode"


class EsaError(Exception):
    """Base exception for all esa client errors.

    ``response`` is the (possibly partial) response envelope, so rate-limit
    data stays inspectable after a failure. ``url`` is always sanitized.
    """

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        *,
        method: str = "",
        url: httpx.URL | str | None = None,
        response: Response | None = None,
    ) -> None:
        self.message = message
        self.method = method
        self.url = sanitize_url(url)
        self.response = response
        super().__init__(message)

    def _prefix(self) -> str:
        return f"{self.method} {self.url}".strip()

    def _with_prefix(self, text: str) -> str:
        prefix = self._prefix()
        return f"{prefix}: {text}" if prefix else text

    def __str__(self) -> str:
        return self._with_prefix(self.message)


class EncodingError(EsaError):
    """The request body could not be serialized to JSON."""

    kind = ErrorKind.ENCODING


class TransportError(EsaError):
    """Network, DNS, TLS or redirect failure before a response arrived."""

    kind = ErrorKind.TRANSPORT


class CanceledError(EsaError):
    """The caller canceled the call or its deadline passed."""

    kind = ErrorKind.CANCELED

    def __init__(self, reason: str = "call canceled", **kwargs) -> None:
        super().__init__(reason, **kwargs)
        self.reason = reason


class DecodeError(EsaError):
    """A successful response body could not be decoded into the target."""

    kind = ErrorKind.DECODE


class HTTPError(EsaError):
    """Raised for any non-success status other than 429."""

    kind = ErrorKind.HTTP

    def __init__(
        self,
        status_code: int,
        message: str = "",
        detail: str = "",
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.detail = detail

    def __str__(self) -> str:
        return self._with_prefix(f"{self.status_code} {self.message} {self.detail}")


class RateLimitExceededError(EsaError):
    """Raised on 429 responses, or locally when the limit is known to be exhausted."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        rate: Rate,
        message: str = "",
        status_code: int = TOO_MANY_REQUESTS,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.rate = rate
        self.status_code = status_code

    @property
    def retry_after(self) -> timedelta:
        """Time left until the rate limit resets (zero if unknown or past)."""
        if self.rate.reset is None:
            return timedelta(0)
        return max(self.rate.reset - datetime.now(timezone.utc), timedelta(0))

    def __str__(self) -> str:
        return self._with_prefix(
            f"{self.status_code} {self.message} {self.retry_after}"
        )


def _request_line(response: httpx.Response) -> tuple[str, httpx.URL | None]:
    try:
        request = response.request
    except RuntimeError:
        return "", None
    return request.method, request.url


def _parse_payload(response: httpx.Response) -> ErrorPayload:
    """Best-effort decode of an error body; never raises."""
    try:
        content = response.content
    except httpx.ResponseNotRead:
        return ErrorPayload()
    if not content:
        return ErrorPayload()
    try:
        return ErrorPayload.model_validate_json(content)
    except ValueError:
        return ErrorPayload()


def check_response(response: httpx.Response) -> EsaError | None:
    """Classify *response*, returning the matching error or *None* on success.

    A response is an error unless its status is 200, 201 or 204. Error
    bodies are expected to be empty or JSON matching :class:`ErrorPayload`;
    anything else is ignored.
    """
    if response.status_code in SUCCESS_STATUSES:
        return None
    payload = _parse_payload(response)
    method, url = _request_line(response)
    if response.status_code == TOO_MANY_REQUESTS:
        return RateLimitExceededError(
            Rate.from_headers(response.headers) or Rate(),
            payload.message,
            method=method,
            url=url,
        )
    return HTTPError(
        response.status_code,
        payload.message,
        payload.error,
        method=method,
        url=url,
    )

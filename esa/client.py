"""Async and sync HTTP clients for the esa API."""

from __future__ import annotations

import functools
import logging
import math
import threading
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, TypeAdapter

from esa.auth import TokenAuth
from esa.config import settings
from esa.exceptions import (
    CanceledError,
    DecodeError,
    EncodingError,
    EsaError,
    RateLimitExceededError,
    TransportError,
    check_response,
)
from esa.models import Rate
from esa.resources.invitations import AsyncInvitationsService, InvitationsService
from esa.resources.teams import AsyncTeamsService, TeamsService
from esa.response import Response
from esa.services.rate_limiter import RateLimitTracker
from esa.services.request_context import call_id_var, generate_call_id
from esa.services.sanitizer import redact_text, sanitize_url

logger = logging.getLogger(__name__)

# Upper bound on bytes read from an unconsumed body before closing it.
DRAIN_LIMIT = 512

_ANY = TypeAdapter(Any)


class Cancelable(Protocol):
    def is_set(self) -> bool: ...


class CancelToken:
    """Caller-owned cancellation signal, safe to set from any thread."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = ""

    def cancel(self, reason: str = "call canceled") -> None:
        self.reason = reason
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


def resolve_url(path: str, base_url: str, api_version: str) -> httpx.URL:
    """Place *path* under the versioned API root.

    ``"/teams"`` and ``"teams"`` both resolve to ``{base}/{version}/teams``.
    """
    if path.startswith("/"):
        rel = f"/{api_version}{path}"
    else:
        rel = f"/{api_version}/{path}"
    return httpx.URL(base_url).join(rel)


def _check_encodable(value: Any) -> None:
    # JSON objects take string keys only, and numbers must be finite.
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"unsupported key type {type(key).__name__!r}")
            _check_encodable(item)
    elif isinstance(value, (list, tuple, set, frozenset)):
        for item in value:
            _check_encodable(item)
    elif isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"out of range float value {value!r}")


def encode_body(body: Any, *, method: str = "", url: httpx.URL | None = None) -> bytes:
    """Serialize *body* to JSON, raising :class:`EncodingError` on failure."""
    try:
        if isinstance(body, BaseModel):
            return body.model_dump_json(by_alias=True, exclude_none=True).encode()
        _check_encodable(body)
        return _ANY.dump_json(body)
    except (TypeError, ValueError) as exc:
        raise EncodingError(
            f"cannot encode request body: {exc}", method=method, url=url,
        ) from exc


def build_request(
    method: str,
    path: str,
    body: Any = None,
    *,
    base_url: str = settings.base_url,
    api_version: str = settings.api_version,
    client: httpx.Client | httpx.AsyncClient | None = None,
) -> httpx.Request:
    """Create an API request for *path*, JSON-encoding *body* when given.

    When *client* is passed its default headers and timeout are merged in.
    """
    method = method.upper()
    url = resolve_url(path, base_url, api_version)
    content: bytes | None = None
    headers: dict[str, str] = {}
    if body is not None:
        content = encode_body(body, method=method, url=url)
        headers["Content-Type"] = "application/json"
    if client is not None:
        return client.build_request(method, url, content=content, headers=headers)
    return httpx.Request(method, url, content=content, headers=headers)


# ---------------------------------------------------------------------------
# Dispatch helpers shared by both clients
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=128)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _cancel_reason(cancel: Cancelable) -> str:
    return getattr(cancel, "reason", "") or "call canceled"


def _is_canceled(cancel: Cancelable | None) -> bool:
    return cancel is not None and cancel.is_set()


def _apply_timeout(request: httpx.Request, timeout: float | None) -> None:
    if timeout is not None:
        request.extensions["timeout"] = httpx.Timeout(timeout).as_dict()


def _transport_failure(
    request: httpx.Request,
    exc: httpx.RequestError,
    cancel: Cancelable | None,
    timeout: float | None,
) -> EsaError:
    """Map an httpx failure, preferring the caller's cancellation reason."""
    if _is_canceled(cancel):
        return CanceledError(
            _cancel_reason(cancel), method=request.method, url=request.url,
        )
    if timeout is not None and isinstance(exc, httpx.TimeoutException):
        return CanceledError(
            f"deadline of {timeout}s exceeded",
            method=request.method,
            url=request.url,
        )
    message = redact_text(str(exc) or type(exc).__name__, request.url)
    logger.warning(
        "%s %s failed: %s", request.method, sanitize_url(request.url), message,
    )
    return TransportError(message, method=request.method, url=request.url)


def _decode(response: httpx.Response, target: Any) -> Any:
    if target is None:
        return None
    if not isinstance(target, type) and hasattr(target, "write"):
        target.write(response.content)
        return target
    content = response.content
    if not content.strip():
        return None
    try:
        return _adapter(target).validate_json(content)
    except ValueError as exc:
        request = response.request
        raise DecodeError(
            f"cannot decode response body: {exc}",
            method=request.method,
            url=request.url,
        ) from exc


def _finish(envelope: Response, target: Any) -> Response:
    """Classify a fully read response, then decode it into *target*."""
    http_response = envelope.http_response
    error = check_response(http_response)
    if error is not None:
        error.response = envelope
        if isinstance(error, RateLimitExceededError):
            logger.warning("Rate limit exceeded: %s", error)
        else:
            logger.debug("API error: %s", error)
        raise error
    try:
        envelope.data = _decode(http_response, target)
    except DecodeError as exc:
        exc.response = envelope
        raise
    return envelope


def _received(
    tracker: RateLimitTracker, http_response: httpx.Response
) -> Response:
    request = http_response.request
    rate = tracker.observe(http_response.headers)
    logger.debug(
        "%s %s -> %d (remaining=%s)",
        request.method,
        sanitize_url(request.url),
        http_response.status_code,
        rate.remaining if rate is not None else "n/a",
    )
    return Response(http_response, rate)


def _drain(response: httpx.Response) -> None:
    if response.is_stream_consumed or response.is_closed:
        return
    drained = 0
    try:
        for chunk in response.iter_raw(chunk_size=DRAIN_LIMIT):
            drained += len(chunk)
            if drained >= DRAIN_LIMIT:
                break
    except httpx.TransportError:
        logger.debug("Ignoring error while draining response body", exc_info=True)


async def _adrain(response: httpx.Response) -> None:
    if response.is_stream_consumed or response.is_closed:
        return
    drained = 0
    try:
        async for chunk in response.aiter_raw(chunk_size=DRAIN_LIMIT):
            drained += len(chunk)
            if drained >= DRAIN_LIMIT:
                break
    except httpx.TransportError:
        logger.debug("Ignoring error while draining response body", exc_info=True)


def _client_kwargs(
    access_token: str | None,
    timeout: float | None,
    transport: Any,
) -> dict[str, Any]:
    token = settings.access_token if access_token is None else access_token
    kwargs: dict[str, Any] = {
        "headers": {
            "Accept": "application/json",
            "User-Agent": settings.user_agent,
        },
        "timeout": settings.timeout if timeout is None else timeout,
        "follow_redirects": True,
    }
    if token:
        kwargs["auth"] = TokenAuth(token)
    if transport is not None:
        kwargs["transport"] = transport
    return kwargs


# ---------------------------------------------------------------------------
# Async client
# ---------------------------------------------------------------------------


class AsyncEsaClient:
    """Async client for the esa API (backed by ``httpx.AsyncClient``).

    Pass *http_client* to take over transport concerns such as
    authentication; otherwise a client is created from *access_token*
    (falling back to ``ESA_ACCESS_TOKEN``).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        api_version: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        _transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.base_url
        self.api_version = api_version or settings.api_version
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            **_client_kwargs(access_token, timeout, _transport)
        )
        self._rate = RateLimitTracker()
        self.teams = AsyncTeamsService(self)
        self.invitations = AsyncInvitationsService(self)

    # -- context manager -----------------------------------------------------

    async def __aenter__(self) -> AsyncEsaClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -- rate limit ----------------------------------------------------------

    @property
    def rate_limit(self) -> Rate:
        """Rate limit as determined by the most recent API call."""
        return self._rate.snapshot()

    @property
    def rate_limiter(self) -> RateLimitTracker:
        return self._rate

    # -- requests ------------------------------------------------------------

    def new_request(self, method: str, path: str, body: Any = None) -> httpx.Request:
        return build_request(
            method,
            path,
            body,
            base_url=self.base_url,
            api_version=self.api_version,
            client=self._client,
        )

    async def do(
        self,
        request: httpx.Request,
        target: Any = None,
        *,
        cancel: Cancelable | None = None,
        timeout: float | None = None,
    ) -> Response:
        """Send *request* and return the response envelope.

        The body is JSON-decoded into *target* (a type) and stored on
        ``Response.data``; a writable *target* receives the raw bytes
        instead. API failures raise :class:`EsaError` subclasses carrying
        the envelope on ``.response``.
        """
        token = call_id_var.set(generate_call_id())
        try:
            return await self._do(request, target, cancel, timeout)
        finally:
            call_id_var.reset(token)

    async def _do(
        self,
        request: httpx.Request,
        target: Any,
        cancel: Cancelable | None,
        timeout: float | None,
    ) -> Response:
        blocked = self._rate.precheck(request)
        if blocked is not None:
            raise blocked
        if _is_canceled(cancel):
            raise CanceledError(
                _cancel_reason(cancel), method=request.method, url=request.url,
            )

        _apply_timeout(request, timeout)
        logger.debug("%s %s", request.method, sanitize_url(request.url))
        try:
            http_response = await self._client.send(request, stream=True)
        except httpx.RequestError as exc:
            raise _transport_failure(request, exc, cancel, timeout) from exc

        try:
            envelope = _received(self._rate, http_response)
            if _is_canceled(cancel):
                raise CanceledError(
                    _cancel_reason(cancel),
                    method=request.method,
                    url=request.url,
                    response=envelope,
                )
            try:
                await http_response.aread()
            except httpx.RequestError as exc:
                error = _transport_failure(request, exc, cancel, timeout)
                error.response = envelope
                raise error from exc
            return _finish(envelope, target)
        finally:
            await _adrain(http_response)
            await http_response.aclose()


# ---------------------------------------------------------------------------
# Sync client
# ---------------------------------------------------------------------------


class EsaClient:
    """Synchronous client for the esa API (backed by ``httpx.Client``).

    One instance may be shared between threads; the rate-limit state is
    the only mutable state and is lock-protected.
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        *,
        base_url: str | None = None,
        api_version: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        _transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.base_url
        self.api_version = api_version or settings.api_version
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            **_client_kwargs(access_token, timeout, _transport)
        )
        self._rate = RateLimitTracker()
        self.teams = TeamsService(self)
        self.invitations = InvitationsService(self)

    # -- context manager -----------------------------------------------------

    def __enter__(self) -> EsaClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # -- rate limit ----------------------------------------------------------

    @property
    def rate_limit(self) -> Rate:
        """Rate limit as determined by the most recent API call."""
        return self._rate.snapshot()

    @property
    def rate_limiter(self) -> RateLimitTracker:
        return self._rate

    # -- requests ------------------------------------------------------------

    def new_request(self, method: str, path: str, body: Any = None) -> httpx.Request:
        return build_request(
            method,
            path,
            body,
            base_url=self.base_url,
            api_version=self.api_version,
            client=self._client,
        )

    def do(
        self,
        request: httpx.Request,
        target: Any = None,
        *,
        cancel: Cancelable | None = None,
        timeout: float | None = None,
    ) -> Response:
        """Send *request* and return the response envelope.

        See :meth:`AsyncEsaClient.do`.
        """
        token = call_id_var.set(generate_call_id())
        try:
            return self._do(request, target, cancel, timeout)
        finally:
            call_id_var.reset(token)

    def _do(
        self,
        request: httpx.Request,
        target: Any,
        cancel: Cancelable | None,
        timeout: float | None,
    ) -> Response:
        blocked = self._rate.precheck(request)
        if blocked is not None:
            raise blocked
        if _is_canceled(cancel):
            raise CanceledError(
                _cancel_reason(cancel), method=request.method, url=request.url,
            )

        _apply_timeout(request, timeout)
        logger.debug("%s %s", request.method, sanitize_url(request.url))
        try:
            http_response = self._client.send(request, stream=True)
        except httpx.RequestError as exc:
            raise _transport_failure(request, exc, cancel, timeout) from exc

        try:
            envelope = _received(self._rate, http_response)
            if _is_canceled(cancel):
                raise CanceledError(
                    _cancel_reason(cancel),
                    method=request.method,
                    url=request.url,
                    response=envelope,
                )
            try:
                http_response.read()
            except httpx.RequestError as exc:
                error = _transport_failure(request, exc, cancel, timeout)
                error.response = envelope
                raise error from exc
            return _finish(envelope, target)
        finally:
            _drain(http_response)
            http_response.close()

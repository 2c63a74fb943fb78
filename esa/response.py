"""Response envelope pairing the raw HTTP response with rate-limit data."""

from __future__ import annotations

from typing import Any

import httpx

from esa.models import Rate


class Response:
    """An esa API response.

    Wraps the ``httpx.Response`` together with the :class:`Rate` parsed from
    its headers. ``data`` holds the decoded body once the dispatcher has
    decoded it.
    """

    def __init__(self, http_response: httpx.Response, rate: Rate | None = None) -> None:
        self.http_response = http_response
        self.rate = rate if rate is not None else (
            Rate.from_headers(http_response.headers) or Rate()
        )
        self.data: Any = None

    @property
    def status_code(self) -> int:
        return self.http_response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.http_response.headers

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] {self.rate!r}>"

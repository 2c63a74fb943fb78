"""Bearer-token authentication for the esa API."""

from __future__ import annotations

from typing import Generator

import httpx


class TokenAuth(httpx.Auth):
    """Attach ``Authorization: Bearer <token>`` to every outgoing request.

    Credentials live in the transport layer; the rest of the client never
    sees the token.
    """

    def __init__(self, token: str) -> None:
        if not token:
            raise ValueError("An access token is required")
        self._token = token

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request

    def __repr__(self) -> str:
        return "TokenAuth(token=<redacted>)"

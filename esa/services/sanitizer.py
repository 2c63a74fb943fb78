"""Redaction of credentials from URLs before they reach errors or logs."""

from __future__ import annotations

import re

import httpx

TOKEN_PARAM = "access_token"
REDACTED = "REDACTED"

_TOKEN_RE = re.compile(rf"({TOKEN_PARAM}=)[^&#\s]+")


def sanitize_url(url: httpx.URL | str | None) -> str:
    """Return *url* as a string with any ``access_token`` value redacted.

    The input is never modified; URLs without a token come back unchanged.
    """
    if url is None:
        return ""
    try:
        parsed = url if isinstance(url, httpx.URL) else httpx.URL(url)
    except httpx.InvalidURL:
        return _TOKEN_RE.sub(rf"\g<1>{REDACTED}", str(url))
    if not any(parsed.params.get_list(TOKEN_PARAM)):
        return str(url)
    params = [
        (key, REDACTED if key == TOKEN_PARAM else value)
        for key, value in parsed.params.multi_items()
    ]
    return str(parsed.copy_with(params=params))


def redact_text(text: str, url: httpx.URL | str | None) -> str:
    """Replace occurrences of the raw *url* inside *text* with its sanitized form."""
    if url is None:
        return text
    raw = str(url)
    return text.replace(raw, sanitize_url(url)) if raw else text

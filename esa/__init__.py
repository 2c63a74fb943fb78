"""esa Python client — typed access to the esa.io API v1."""

from __future__ import annotations

from esa.auth import TokenAuth
from esa.client import AsyncEsaClient, CancelToken, EsaClient, build_request
from esa.exceptions import (
    CanceledError,
    DecodeError,
    EncodingError,
    ErrorKind,
    EsaError,
    HTTPError,
    RateLimitExceededError,
    TransportError,
    check_response,
)
from esa.models import (
    Invitation,
    InvitationEmails,
    InvitationList,
    InvitationMember,
    InvitationURL,
    Rate,
    Team,
    TeamList,
    TeamStats,
)
from esa.response import Response
from esa.services.sanitizer import sanitize_url

__all__ = [
    "AsyncEsaClient",
    "EsaClient",
    "CancelToken",
    "TokenAuth",
    "build_request",
    "check_response",
    "sanitize_url",
    "Response",
    "Rate",
    "ErrorKind",
    "EsaError",
    "EncodingError",
    "TransportError",
    "CanceledError",
    "DecodeError",
    "HTTPError",
    "RateLimitExceededError",
    "Team",
    "TeamList",
    "TeamStats",
    "Invitation",
    "InvitationEmails",
    "InvitationList",
    "InvitationMember",
    "InvitationURL",
]

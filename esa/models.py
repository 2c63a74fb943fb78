"""Wire models for the esa API and the rate-limit value type."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from pydantic import BaseModel, Field

from esa.timestamps import Timestamp, from_epoch

HEADER_RATE_LIMIT = "X-RateLimit-Limit"
HEADER_RATE_REMAINING = "X-RateLimit-Remaining"
HEADER_RATE_RESET = "X-RateLimit-Reset"


def _parse_int(raw: str | None) -> int:
    if raw is None:
        return 0
    try:
        return max(int(raw), 0)
    except ValueError:
        return 0


@dataclass(frozen=True)
class Rate:
    """Rate-limit state as reported by the most recent API response."""

    limit: int = 0
    remaining: int = 0
    reset: datetime | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> Rate | None:
        """Parse ``X-RateLimit-*`` headers, returning *None* if all are absent.

        *headers* should be case-insensitive (``httpx.Headers``); plain
        dicts are looked up with the canonical header names.
        """
        raw_limit = headers.get(HEADER_RATE_LIMIT)
        raw_remaining = headers.get(HEADER_RATE_REMAINING)
        raw_reset = headers.get(HEADER_RATE_RESET)
        if raw_limit is None and raw_remaining is None and raw_reset is None:
            return None
        return cls(
            limit=_parse_int(raw_limit),
            remaining=_parse_int(raw_remaining),
            reset=from_epoch(raw_reset),
        )


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorPayload(BaseModel):
    """JSON body of an API error response."""

    message: str = ""
    error: str = ""


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


class Pagination(BaseModel):
    """Pagination metadata shared by list responses."""

    prev_page: int | None = Field(None, description="Previous page, null on the first page")
    next_page: int | None = Field(None, description="Next page, null on the last page")
    total_count: int | None = None
    page: int | None = None
    per_page: int | None = None
    max_per_page: int | None = None


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------


class Team(BaseModel):
    name: str
    privacy: str = ""
    description: str = ""
    icon: str = ""
    url: str = ""


class TeamList(Pagination):
    teams: list[Team] = Field(default_factory=list)


class TeamStats(BaseModel):
    """Usage counters for a single team."""

    members: int = 0
    posts: int = 0
    posts_wip: int = 0
    posts_shipped: int = 0
    comments: int = 0
    stars: int = 0
    daily_active_users: int = 0
    weekly_active_users: int = 0
    monthly_active_users: int = 0


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------


class InvitationURL(BaseModel):
    url: str


class Invitation(BaseModel):
    email: str
    code: str
    expires_at: Timestamp | None = None
    url: str = ""


class InvitationList(Pagination):
    invitations: list[Invitation] = Field(default_factory=list)


class InvitationEmails(BaseModel):
    emails: list[str] = Field(default_factory=list)


class InvitationMember(BaseModel):
    """Request body for sending e-mail invitations to a team."""

    member: InvitationEmails | None = None

"""Invitation endpoints: shared invitation URL and per-member e-mail invitations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable
from urllib.parse import quote

from esa.models import InvitationEmails, InvitationList, InvitationMember, InvitationURL
from esa.response import Response

if TYPE_CHECKING:
    from esa.client import AsyncEsaClient, EsaClient


def _team_path(team: str, suffix: str) -> str:
    return f"teams/{quote(team, safe='')}/{suffix}"


def _member_body(member: InvitationMember | Iterable[str]) -> InvitationMember:
    if isinstance(member, InvitationMember):
        return member
    return InvitationMember(member=InvitationEmails(emails=list(member)))


class InvitationsService:
    """Team invitations (team owners only)."""

    def __init__(self, client: EsaClient) -> None:
        self._client = client

    def get_url(self, team: str) -> tuple[InvitationURL | None, Response]:
        """Fetch the team's shared invitation URL."""
        req = self._client.new_request("GET", _team_path(team, "invitation"))
        resp = self._client.do(req, InvitationURL)
        return resp.data, resp

    def regenerate_url(self, team: str) -> tuple[InvitationURL | None, Response]:
        """Invalidate the shared invitation URL and issue a new one."""
        req = self._client.new_request(
            "POST", _team_path(team, "invitation_regenerator"),
        )
        resp = self._client.do(req, InvitationURL)
        return resp.data, resp

    def send_to_member(
        self,
        team: str,
        member: InvitationMember | Iterable[str],
    ) -> tuple[InvitationList | None, Response]:
        """Send e-mail invitations; *member* may be a plain list of addresses."""
        req = self._client.new_request(
            "POST", _team_path(team, "invitations"), _member_body(member),
        )
        resp = self._client.do(req, InvitationList)
        return resp.data, resp

    def list(self, team: str) -> tuple[InvitationList | None, Response]:
        req = self._client.new_request("GET", _team_path(team, "invitations"))
        resp = self._client.do(req, InvitationList)
        return resp.data, resp

    def cancel(self, team: str, code: str) -> Response:
        req = self._client.new_request(
            "DELETE", _team_path(team, f"invitations/{quote(code, safe='')}"),
        )
        return self._client.do(req)


class AsyncInvitationsService:
    def __init__(self, client: AsyncEsaClient) -> None:
        self._client = client

    async def get_url(self, team: str) -> tuple[InvitationURL | None, Response]:
        req = self._client.new_request("GET", _team_path(team, "invitation"))
        resp = await self._client.do(req, InvitationURL)
        return resp.data, resp

    async def regenerate_url(self, team: str) -> tuple[InvitationURL | None, Response]:
        req = self._client.new_request(
            "POST", _team_path(team, "invitation_regenerator"),
        )
        resp = await self._client.do(req, InvitationURL)
        return resp.data, resp

    async def send_to_member(
        self,
        team: str,
        member: InvitationMember | Iterable[str],
    ) -> tuple[InvitationList | None, Response]:
        req = self._client.new_request(
            "POST", _team_path(team, "invitations"), _member_body(member),
        )
        resp = await self._client.do(req, InvitationList)
        return resp.data, resp

    async def list(self, team: str) -> tuple[InvitationList | None, Response]:
        req = self._client.new_request("GET", _team_path(team, "invitations"))
        resp = await self._client.do(req, InvitationList)
        return resp.data, resp

    async def cancel(self, team: str, code: str) -> Response:
        req = self._client.new_request(
            "DELETE", _team_path(team, f"invitations/{quote(code, safe='')}"),
        )
        return await self._client.do(req)

"""Team endpoints: ``GET teams``, ``GET teams/{team}``, ``GET teams/{team}/stats``."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

from esa.models import Team, TeamList, TeamStats
from esa.response import Response

if TYPE_CHECKING:
    from esa.client import AsyncEsaClient, EsaClient


class TeamsService:
    """Access to the teams the authenticated user belongs to."""

    def __init__(self, client: EsaClient) -> None:
        self._client = client

    def list(self) -> tuple[TeamList | None, Response]:
        req = self._client.new_request("GET", "teams")
        resp = self._client.do(req, TeamList)
        return resp.data, resp

    def get(self, team: str) -> tuple[Team | None, Response]:
        req = self._client.new_request("GET", f"teams/{quote(team, safe='')}")
        resp = self._client.do(req, Team)
        return resp.data, resp

    def stats(self, team: str) -> tuple[TeamStats | None, Response]:
        req = self._client.new_request("GET", f"teams/{quote(team, safe='')}/stats")
        resp = self._client.do(req, TeamStats)
        return resp.data, resp


class AsyncTeamsService:
    def __init__(self, client: AsyncEsaClient) -> None:
        self._client = client

    async def list(self) -> tuple[TeamList | None, Response]:
        req = self._client.new_request("GET", "teams")
        resp = await self._client.do(req, TeamList)
        return resp.data, resp

    async def get(self, team: str) -> tuple[Team | None, Response]:
        req = self._client.new_request("GET", f"teams/{quote(team, safe='')}")
        resp = await self._client.do(req, Team)
        return resp.data, resp

    async def stats(self, team: str) -> tuple[TeamStats | None, Response]:
        req = self._client.new_request("GET", f"teams/{quote(team, safe='')}/stats")
        resp = await self._client.do(req, TeamStats)
        return resp.data, resp

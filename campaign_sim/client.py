"""Adapters for the content store and the interaction (generation) service.

The pipeline talks to two collaborators through these protocols:

    RecordRepository   - resolves record types, queries and creates records.
    ContentGenerator   - executes a named interaction with structured input.

StudioClient implements both over HTTP. Wire formats it assumes:

    GET  {studio}/auth/token                                  -> {"token": "..."}
    GET  {store}/api/v1/types/by-name/{name}                  -> ContentType
    POST {store}/api/v1/objects/find      {"query": {...}}    -> [StoredObject]
    POST {store}/api/v1/objects           ObjectPayload       -> StoredObject
    POST {studio}/api/v1/interactions/by-name/{name}/execute
         {"data": ..., "result_schema": ..., "config": ...}   -> {"result": ...}

Store failures surface as PersistenceFailed, interaction failures as
GenerationFailed. Tests use JsonStore and a stub generator instead.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from campaign_sim.errors import (
    CampaignError,
    ConfigurationError,
    GenerationFailed,
    PersistenceFailed,
)
from campaign_sim.models import ContentType, ExecutionConfig, ObjectPayload, StoredObject

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols - the only surface the pipeline depends on
# ---------------------------------------------------------------------------

class RecordRepository(Protocol):
    async def get_type_by_name(self, name: str) -> ContentType | None: ...

    async def find(self, query: dict[str, Any]) -> list[StoredObject]: ...

    async def create(self, payload: ObjectPayload) -> StoredObject: ...


class ContentGenerator(Protocol):
    async def execute(
        self,
        interaction: str,
        data: dict[str, Any],
        *,
        result_schema: dict[str, Any] | None,
        config: ExecutionConfig,
    ) -> dict[str, Any]: ...


# ---------------------------------------------------------------------------
# StudioClient - HTTP implementation of both protocols
# ---------------------------------------------------------------------------

class StudioClient:
    """Async HTTP client for the studio (interactions) and store (records) APIs.

    Args:
        studio_url: Base URL of the interaction service.
        store_url:  Base URL of the content store. May be empty when only
                    interactions are used.
        api_key:    API key; exchanged for a bearer token by authenticate().
        project_id: Sent as the ``x-project-id`` header when set.
        timeout:    HTTP timeout in seconds. Defaults to 120.
        transport:  Optional httpx transport, e.g. httpx.MockTransport.
    """

    def __init__(
        self,
        studio_url: str,
        store_url: str = "",
        api_key: str = "",
        project_id: str = "",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._studio_url = studio_url.rstrip("/")
        self._store_url = store_url.rstrip("/")
        self._api_key = api_key
        self._token = ""
        self._project_id = project_id
        self._timeout = timeout
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> StudioClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        credential = self._token or self._api_key
        if credential:
            headers["Authorization"] = f"Bearer {credential}"
        if self._project_id:
            headers["x-project-id"] = self._project_id
        return headers

    def _store(self, path: str) -> str:
        if not self._store_url:
            raise ConfigurationError("Content store URL is not configured")
        return f"{self._store_url}{path}"

    async def _send(
        self,
        method: str,
        url: str,
        error: type[CampaignError],
        *,
        json: Any = None,
        allow_404: bool = False,
    ) -> Any:
        """Issue one request and return the decoded JSON body.

        Transport and status failures are raised as ``error``. With
        ``allow_404`` a 404 response returns None instead.
        """
        logger.debug("%s %s", method, url)
        try:
            resp = await self._http.request(method, url, json=json, headers=self._headers())
            if allow_404 and resp.status_code == 404:
                return None
            resp.raise_for_status()
        except httpx.ConnectError as e:
            raise error(f"Cannot connect to {url}") from e
        except httpx.HTTPStatusError as e:
            raise error(f"{method} {url} returned HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise error(f"{method} {url} timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise error(f"{method} {url} failed: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise error(f"{method} {url} returned a non-JSON body") from e

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def authenticate(self) -> None:
        """Exchange the API key for a bearer token. No-op without a key."""
        if not self._api_key:
            logger.debug("no API key configured, skipping token exchange")
            return
        self._token = ""
        data = await self._send("GET", f"{self._studio_url}/auth/token", ConfigurationError)
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise ConfigurationError("Token exchange returned no token")
        self._token = token

    # ------------------------------------------------------------------
    # RecordRepository
    # ------------------------------------------------------------------

    async def get_type_by_name(self, name: str) -> ContentType | None:
        url = self._store(f"/api/v1/types/by-name/{quote(name, safe='')}")
        data = await self._send("GET", url, PersistenceFailed, allow_404=True)
        if data is None:
            return None
        try:
            return ContentType.model_validate(data)
        except ValidationError as e:
            raise PersistenceFailed(f"Malformed type record for {name!r}") from e

    async def find(self, query: dict[str, Any]) -> list[StoredObject]:
        url = self._store("/api/v1/objects/find")
        data = await self._send("POST", url, PersistenceFailed, json={"query": query})
        if not isinstance(data, list):
            raise PersistenceFailed(f"Expected a list of objects, got {type(data).__name__}")
        try:
            return [StoredObject.model_validate(o) for o in data]
        except ValidationError as e:
            raise PersistenceFailed("Malformed object in query result") from e

    async def create(self, payload: ObjectPayload) -> StoredObject:
        url = self._store("/api/v1/objects")
        data = await self._send(
            "POST", url, PersistenceFailed, json=payload.model_dump(exclude_none=True),
        )
        try:
            return StoredObject.model_validate(data)
        except ValidationError as e:
            raise PersistenceFailed("Malformed object returned by create") from e

    # ------------------------------------------------------------------
    # ContentGenerator
    # ------------------------------------------------------------------

    async def execute(
        self,
        interaction: str,
        data: dict[str, Any],
        *,
        result_schema: dict[str, Any] | None,
        config: ExecutionConfig,
    ) -> dict[str, Any]:
        url = f"{self._studio_url}/api/v1/interactions/by-name/{quote(interaction, safe='')}/execute"
        body = {
            "data": data,
            "result_schema": result_schema,
            "config": config.model_dump(exclude_none=True),
        }
        resp = await self._send("POST", url, GenerationFailed, json=body)
        result = resp.get("result") if isinstance(resp, dict) else None
        if not isinstance(result, dict) or not result:
            raise GenerationFailed(f"Interaction {interaction!r} returned no result")
        logger.debug("interaction %s returned keys=%s", interaction, sorted(result))
        return result

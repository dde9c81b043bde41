"""Connection context shared by every pipeline call of one command.

A CampaignContext is built once by open_context() (or the
campaign_context() async context manager) and passed explicitly to
reconcile / plan_session / play_session / simulate. It owns the adapters
and the two resolved record types; nothing is cached at module level.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from campaign_sim.client import ContentGenerator, RecordRepository, StudioClient
from campaign_sim.config import Settings
from campaign_sim.errors import (
    CampaignError,
    ConfigurationError,
    GenerationFailed,
    PersistenceFailed,
    SchemaUnavailable,
)
from campaign_sim.models import ContentType, ExecutionConfig, ObjectPayload, StoredObject

logger = logging.getLogger(__name__)


@dataclass
class CampaignContext:
    settings: Settings
    repository: RecordRepository
    generator: ContentGenerator
    plan_type: ContentType | None = None
    session_type: ContentType | None = None
    _owned_client: StudioClient | None = field(default=None, repr=False)

    def require_types(self) -> tuple[ContentType, ContentType]:
        """Return (plan_type, session_type) or raise SchemaUnavailable."""
        if self.plan_type is None or self.session_type is None:
            raise SchemaUnavailable(
                f"Type {self.settings.plan_type_name!r} or "
                f"{self.settings.session_type_name!r} not found"
            )
        return self.plan_type, self.session_type

    # Adapter calls used by the pipeline. Errors that are not already a
    # CampaignError are re-raised as GenerationFailed / PersistenceFailed.

    async def generate(
        self,
        interaction: str,
        data: dict[str, Any],
        *,
        result_schema: dict[str, Any] | None,
        config: ExecutionConfig,
    ) -> dict[str, Any]:
        try:
            return await self.generator.execute(
                interaction, data, result_schema=result_schema, config=config,
            )
        except CampaignError:
            raise
        except Exception as e:
            raise GenerationFailed(f"Interaction {interaction} failed: {e}") from e

    async def find(self, query: dict[str, Any]) -> list[StoredObject]:
        try:
            return await self.repository.find(query)
        except CampaignError:
            raise
        except Exception as e:
            raise PersistenceFailed(f"Record query failed: {e}") from e

    async def create(self, payload: ObjectPayload) -> StoredObject:
        try:
            return await self.repository.create(payload)
        except CampaignError:
            raise
        except Exception as e:
            raise PersistenceFailed(f"Cannot create record {payload.name!r}: {e}") from e

    async def aclose(self) -> None:
        if self._owned_client is not None:
            await self._owned_client.aclose()
            self._owned_client = None


async def open_context(
    settings: Settings,
    *,
    repository: RecordRepository | None = None,
    generator: ContentGenerator | None = None,
) -> CampaignContext:
    """Connect, authenticate and resolve the plan/session record types.

    A StudioClient is created for whichever adapter is not supplied. The
    caller must aclose() the returned context.
    """
    client: StudioClient | None = None
    if repository is None or generator is None:
        if not settings.studio_url:
            raise ConfigurationError("Missing required setting STUDIO_URL")
        if repository is None and not settings.store_url:
            raise ConfigurationError("Missing required setting STORE_URL")
        client = StudioClient(
            studio_url=settings.studio_url,
            store_url=settings.store_url,
            api_key=settings.api_key,
            project_id=settings.project_id,
            timeout=settings.timeout,
        )

    ctx = CampaignContext(
        settings=settings,
        repository=repository if repository is not None else client,
        generator=generator if generator is not None else client,
        _owned_client=client,
    )
    try:
        if client is not None:
            await client.authenticate()
        ctx.plan_type = await ctx.repository.get_type_by_name(settings.plan_type_name)
        ctx.session_type = await ctx.repository.get_type_by_name(settings.session_type_name)
        ctx.require_types()
    except BaseException:
        await ctx.aclose()
        raise

    logger.info(
        "resolved types plan=%s session=%s", ctx.plan_type.id, ctx.session_type.id,
    )
    return ctx


@asynccontextmanager
async def campaign_context(
    settings: Settings,
    *,
    repository: RecordRepository | None = None,
    generator: ContentGenerator | None = None,
) -> AsyncIterator[CampaignContext]:
    ctx = await open_context(settings, repository=repository, generator=generator)
    try:
        yield ctx
    finally:
        await ctx.aclose()

from pathlib import Path
from typing import Any, Callable

import pytest

from campaign_sim.config import Settings
from campaign_sim.context import CampaignContext
from campaign_sim.models import ExecutionConfig, ObjectPayload, StoredObject
from campaign_sim.storage import JsonStore


class StubGenerator:
    """Deterministic content generator for tests.

    Queue responses per interaction name with push(); an Exception instance
    in the queue is raised instead of returned. Raises if an interaction is
    called more times than responses were queued.
    """

    def __init__(self) -> None:
        self._queues: dict[str, list[Any]] = {}
        self.calls: list[dict[str, Any]] = []

    def push(self, interaction: str, *responses: Any) -> None:
        self._queues.setdefault(interaction, []).extend(responses)

    async def execute(
        self,
        interaction: str,
        data: dict[str, Any],
        *,
        result_schema: dict[str, Any] | None,
        config: ExecutionConfig,
    ) -> dict[str, Any]:
        self.calls.append({
            "interaction": interaction,
            "data": data,
            "result_schema": result_schema,
            "config": config,
        })
        queue = self._queues.get(interaction)
        if not queue:
            raise AssertionError(
                f"StubGenerator: unexpected call to {interaction!r} "
                f"(no responses queued). calls so far: {len(self.calls)}"
            )
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def calls_to(self, interaction: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["interaction"] == interaction]

    def assert_exhausted(self) -> None:
        """Assert every queued response was consumed."""
        leftover = {k: v for k, v in self._queues.items() if v}
        if leftover:
            raise AssertionError(f"StubGenerator: unused responses remain: {leftover}")


@pytest.fixture
def settings() -> Settings:
    return Settings(studio_url="http://studio.test", store_url="http://store.test")


@pytest.fixture
def store(tmp_path: Path, settings: Settings) -> JsonStore:
    s = JsonStore(tmp_path / "store")
    s.register_type(settings.plan_type_name, {"type": "object", "title": "plan"})
    s.register_type(settings.session_type_name, {"type": "object", "title": "session"})
    return s


@pytest.fixture
def generator() -> StubGenerator:
    return StubGenerator()


@pytest.fixture
async def ctx(settings: Settings, store: JsonStore, generator: StubGenerator) -> CampaignContext:
    return CampaignContext(
        settings=settings,
        repository=store,
        generator=generator,
        plan_type=await store.get_type_by_name(settings.plan_type_name),
        session_type=await store.get_type_by_name(settings.session_type_name),
    )


@pytest.fixture
def seed(store: JsonStore, ctx: CampaignContext) -> Callable[..., Any]:
    """seed(campaign_id, plans=[...], sessions=[...]) - write records directly."""

    async def _seed(
        campaign_id: str,
        plans: tuple[int, ...] | list[int] = (),
        sessions: tuple[int, ...] | list[int] = (),
    ) -> list[StoredObject]:
        created = []
        for n in plans:
            created.append(await store.create(ObjectPayload(
                type=ctx.plan_type.id,
                name=f"[{campaign_id}] Plan {n}",
                properties={"campaignId": campaign_id, "sessionNumber": n, "title": f"Plan {n}"},
            )))
        for n in sessions:
            created.append(await store.create(ObjectPayload(
                type=ctx.session_type.id,
                name=f"[{campaign_id}] Session {n}",
                properties={"campaignId": campaign_id, "sessionNumber": n, "summary": f"Played {n}"},
                text=f"Played {n}",
            )))
        return created

    return _seed

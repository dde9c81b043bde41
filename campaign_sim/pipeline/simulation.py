"""Turn simulation - plays N sessions of a campaign in sequence.

Turn flow:
  1. Reconcile once up front; its unplayed plans form the turn queue.
     The queue is not refreshed during the run.
  2. For each turn: take the next plan (queue head, else a generated one),
     run the summarizer on it, persist the session under the plan record.
  3. Report each finished turn through ``on_turn``.

Any failure aborts the run. Sessions saved by earlier turns stay saved.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable

from pydantic import ValidationError

from campaign_sim.context import CampaignContext
from campaign_sim.errors import GenerationFailed, PersistenceFailed
from campaign_sim.models import (
    ObjectPayload,
    Plan,
    Session,
    SessionOptions,
    SessionProperties,
    TurnReport,
)
from campaign_sim.pipeline.planner import next_plan
from campaign_sim.pipeline.reconcile import reconcile

logger = logging.getLogger(__name__)


async def simulate(
    ctx: CampaignContext,
    campaign_id: str,
    turns: int,
    options: SessionOptions,
    on_turn: Callable[[TurnReport], None] | None = None,
) -> list[TurnReport]:
    """Play ``turns`` sessions of a campaign and return one report per turn."""
    if turns < 0:
        raise ValueError(f"turns must be >= 0, got {turns}")

    snapshot = await reconcile(ctx, campaign_id)
    queue: deque[Plan] = deque(snapshot.unplayed_plans)

    reports: list[TurnReport] = []
    for turn in range(1, turns + 1):
        plan, reused = await next_plan(queue, ctx, campaign_id, options)
        logger.info("Playing turn %d with plan %s", turn, plan.name)
        session = await play_session(ctx, plan, options)

        report = TurnReport(turn=turn, plan=plan, session=session, reused_plan=reused)
        reports.append(report)
        if on_turn is not None:
            on_turn(report)

    return reports


async def play_session(ctx: CampaignContext, plan: Plan, options: SessionOptions) -> Session:
    """Run the summarizer on a plan and persist the resulting session."""
    _, session_type = ctx.require_types()
    props = plan.properties

    logger.info("Playing session %d of %s", props.session_number, props.campaign_id)
    plan_context = props.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    result = await ctx.generate(
        ctx.settings.summarizer_interaction,
        {"sessionPlan": plan_context},
        result_schema=session_type.object_schema,
        config=options.execution_config(),
    )
    summary = result.get("summary") if result else None
    if not isinstance(summary, str) or not summary.strip():
        raise GenerationFailed(
            f"Summarizer returned no summary for session {props.session_number}"
        )

    properties = SessionProperties(
        campaign_id=props.campaign_id,
        session_number=props.session_number,
        summary=summary,
    )
    stored = await ctx.create(ObjectPayload(
        type=session_type.id,
        parent=plan.id,
        name=f"[{props.campaign_id}] Session {props.session_number}",
        properties=properties.model_dump(by_alias=True),
        text=summary,
    ))
    try:
        session = Session.model_validate(stored.model_dump())
    except ValidationError as e:
        raise PersistenceFailed(f"Created session {stored.id} has malformed properties") from e
    logger.info("Session summary saved: %s", session.id)
    return session


async def read_sessions(ctx: CampaignContext, campaign_id: str) -> list[Session]:
    """Sessions played so far in a campaign, ordered by session number."""
    return (await reconcile(ctx, campaign_id)).sessions

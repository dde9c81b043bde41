"""Plan acquisition - reuse an unplayed plan or generate a new one.

Generation flow (plan_session):
  1. Reconcile the campaign (fresh fetch) for previous plans and sessions.
     A new campaign (no id) starts from an empty history.
  2. Number the plan one past the highest previous plan, so 0 for the first.
  3. Pick the session guide for that number.
  4. Call the planner interaction with party info, setting, history and
     objectives, asking for the plan type's schema.
  5. Persist the result as a new plan record named "[campaign] title".
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any

from pydantic import ValidationError

from campaign_sim.config import Settings
from campaign_sim.context import CampaignContext
from campaign_sim.errors import GenerationFailed, PersistenceFailed
from campaign_sim.models import (
    ObjectPayload,
    Plan,
    PlanProperties,
    Session,
    SessionOptions,
    SessionProperties,
)
from campaign_sim.pipeline.reconcile import reconcile

logger = logging.getLogger(__name__)


async def next_plan(
    queue: deque[Plan],
    ctx: CampaignContext,
    campaign_id: str,
    options: SessionOptions,
) -> tuple[Plan, bool]:
    """Return (plan, reused). Pops the head of ``queue`` when it is non-empty."""
    if queue:
        return queue.popleft(), True
    return await plan_session(ctx, campaign_id, options), False


async def plan_session(
    ctx: CampaignContext,
    campaign_id: str | None,
    options: SessionOptions,
) -> Plan:
    """Generate, persist and return the next plan of a campaign.

    With ``campaign_id`` None a new campaign is opened: the plan gets
    session number 0 and takes its campaign id from the generated result.
    """
    plan_type, _ = ctx.require_types()

    if campaign_id:
        history = await reconcile(ctx, campaign_id)
        previous_plans, previous_sessions = history.plans, history.sessions
    else:
        previous_plans, previous_sessions = [], []

    session_number = next_session_number(previous_plans)
    session_guide = select_session_guide(session_number, ctx.settings)

    logger.info("Planning session %d for campaign %s", session_number, campaign_id or "<new>")
    data = build_planner_input(
        options,
        session_number=session_number,
        session_guide=session_guide,
        previous_plans=previous_plans,
        previous_sessions=previous_sessions,
    )
    result = await ctx.generate(
        ctx.settings.planner_interaction,
        data,
        result_schema=plan_type.object_schema,
        config=options.execution_config(),
    )
    if not result:
        raise GenerationFailed("Planner returned no result")

    properties = _plan_properties(result, campaign_id, session_number, session_guide)

    logger.info("Saving session plan %r", properties.title)
    stored = await ctx.create(ObjectPayload(
        type=plan_type.id,
        properties=_as_context(properties),
        name=f"[{properties.campaign_id}] {properties.title}",
    ))
    try:
        plan = Plan.model_validate(stored.model_dump())
    except ValidationError as e:
        raise PersistenceFailed(f"Created plan {stored.id} has malformed properties") from e
    logger.info("Session plan saved: %s", plan.id)
    return plan


def next_session_number(previous_plans: list[Plan]) -> int:
    """One past the highest existing session number; 0 for a new campaign."""
    if not previous_plans:
        return 0
    return max(p.session_number for p in previous_plans) + 1


def select_session_guide(session_number: int, settings: Settings) -> str:
    """Guide reference for a session: explicit override, opening guide for 0, else default."""
    override = settings.guide_overrides.get(session_number)
    if override:
        return override
    if session_number == 0:
        return settings.opening_guide
    return settings.continuation_guide


def build_planner_input(
    options: SessionOptions,
    *,
    session_number: int,
    session_guide: str,
    previous_plans: list[Plan],
    previous_sessions: list[Session],
) -> dict[str, Any]:
    return {
        "partyInfo": options.party_info().model_dump(),
        "sessionNumber": session_number,
        "sessionGuide": session_guide,
        "campaignSetting": options.theme,
        "previousSessionsSummaries": [_as_context(s.properties) for s in previous_sessions],
        "previousPlans": [_as_context(p.properties) for p in previous_plans],
        "currentObjectives": list(options.objectives),
    }


def _as_context(properties: PlanProperties | SessionProperties) -> dict[str, Any]:
    """Record properties as stored, without defaults the record never carried."""
    return properties.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


def _plan_properties(
    result: dict[str, Any],
    campaign_id: str | None,
    session_number: int,
    session_guide: str,
) -> PlanProperties:
    """Validate a planner result, pinning the requested campaign and number."""
    fields = dict(result)
    echoed = fields.get("sessionNumber")
    if echoed is not None and echoed != session_number:
        logger.warning(
            "Planner returned session number %r, keeping requested %d", echoed, session_number,
        )
    fields["sessionNumber"] = session_number
    fields.setdefault("sessionGuide", session_guide)
    if campaign_id:
        fields["campaignId"] = campaign_id

    try:
        return PlanProperties.model_validate(fields)
    except ValidationError as e:
        raise GenerationFailed(f"Planner returned an unusable plan: {e}") from e

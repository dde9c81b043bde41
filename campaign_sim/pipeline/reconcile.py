"""Reconciliation - which plans of a campaign have not been played yet.

Fetches every plan and every session record carrying the campaign id,
orders both by session number (stable sort, so duplicates keep store
order) and derives the unplayed plans: plans whose session number has no
session with the same number.
"""

from __future__ import annotations

import logging
from typing import TypeVar

from pydantic import ValidationError

from campaign_sim.context import CampaignContext
from campaign_sim.errors import MissingIdentifier, PersistenceFailed
from campaign_sim.models import ContentType, Plan, ReconciliationResult, Session, StoredObject

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", Plan, Session)


async def reconcile(ctx: CampaignContext, campaign_id: str | None) -> ReconciliationResult:
    """Fetch and order a campaign's plans and sessions; compute unplayed plans."""
    if not campaign_id:
        raise MissingIdentifier("Campaign ID not provided")
    plan_type, session_type = ctx.require_types()

    sessions = await _fetch(ctx, session_type, campaign_id, Session)
    logger.info("Found %d previous sessions for campaign %s", len(sessions), campaign_id)

    plans = await _fetch(ctx, plan_type, campaign_id, Plan)
    logger.info("Found %d previous plans for campaign %s", len(plans), campaign_id)

    unplayed = unplayed_plans(plans, sessions)
    logger.info(
        "Found %d unplayed plans for campaign %s: %s",
        len(unplayed), campaign_id, [p.properties.title for p in unplayed],
    )

    return ReconciliationResult(plans=plans, sessions=sessions, unplayed_plans=unplayed)


def unplayed_plans(plans: list[Plan], sessions: list[Session]) -> list[Plan]:
    """Plans with no session of the same session number, in plan order."""
    played = {s.session_number for s in sessions}
    return [p for p in plans if p.session_number not in played]


async def _fetch(
    ctx: CampaignContext,
    content_type: ContentType,
    campaign_id: str,
    model: type[RecordT],
) -> list[RecordT]:
    raw = await ctx.find({
        "type": content_type.id,
        "properties.campaignId": campaign_id,
    })
    records = [_parse(model, obj) for obj in raw]
    # sorted() is stable
    return sorted(records, key=lambda r: r.session_number)


def _parse(model: type[RecordT], obj: StoredObject) -> RecordT:
    try:
        return model.model_validate(obj.model_dump())
    except ValidationError as e:
        raise PersistenceFailed(
            f"Stored {model.__name__.lower()} {obj.id} has malformed properties"
        ) from e

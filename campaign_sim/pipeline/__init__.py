"""Campaign session pipeline.

  reconcile      - plans and sessions of a campaign, and which plans are unplayed.
  plan_session   - generate and persist the next plan.
  next_plan      - reuse the head of the unplayed queue, else plan_session.
  play_session   - summarize a plan into a persisted session.
  simulate       - N sequential turns of next_plan + play_session.
  read_sessions  - ordered sessions of a campaign.

Every call takes an explicit CampaignContext and runs strictly in sequence.
"""

from .planner import (  # noqa: F401
    build_planner_input,
    next_plan,
    next_session_number,
    plan_session,
    select_session_guide,
)
from .reconcile import reconcile, unplayed_plans  # noqa: F401
from .simulation import play_session, read_sessions, simulate  # noqa: F401

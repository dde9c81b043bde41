"""Settings loaded from the environment (and an optional .env file).

Variables:

    STUDIO_URL               interaction (generation) service base URL
    STORE_URL                content store base URL
    COMPOSABLE_KEY           API key, exchanged for a token on connect
    PROJECT_ID               project scope sent with every request
    PLAN_TYPE_NAME           record type name for plans
    SESSION_TYPE_NAME        record type name for session summaries
    PLANNER_INTERACTION      interaction that writes a session plan
    SUMMARIZER_INTERACTION   interaction that plays a plan into a summary
    REQUEST_TIMEOUT          HTTP timeout in seconds
    OPENING_SESSION_GUIDE    guide used for session 0
    SESSION_GUIDE            guide used for every later session
    SESSION_GUIDE_OVERRIDES  JSON object mapping session number -> guide
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from campaign_sim.errors import ConfigurationError

DEFAULT_OPENING_GUIDE = "store:66d97ce0ca04fdf05f1a1151"
DEFAULT_SESSION_GUIDE = "store:66d97ce8ca04fdf05f1a1161"


class Settings(BaseModel):
    studio_url: str = ""
    store_url: str = ""
    api_key: str = ""
    project_id: str = ""
    plan_type_name: str = "D&D Session Plan"
    session_type_name: str = "D&D Session Summary"
    planner_interaction: str = "DungeonsAndDragonsSessionPlanner"
    summarizer_interaction: str = "DungeonsAndDragonsSessionSummarizer"
    timeout: float = Field(default=120.0, gt=0)
    opening_guide: str = DEFAULT_OPENING_GUIDE
    continuation_guide: str = DEFAULT_SESSION_GUIDE
    guide_overrides: dict[int, str] = Field(default_factory=dict)


_ENV_FIELDS = {
    "STUDIO_URL": "studio_url",
    "STORE_URL": "store_url",
    "COMPOSABLE_KEY": "api_key",
    "PROJECT_ID": "project_id",
    "PLAN_TYPE_NAME": "plan_type_name",
    "SESSION_TYPE_NAME": "session_type_name",
    "PLANNER_INTERACTION": "planner_interaction",
    "SUMMARIZER_INTERACTION": "summarizer_interaction",
    "REQUEST_TIMEOUT": "timeout",
    "OPENING_SESSION_GUIDE": "opening_guide",
    "SESSION_GUIDE": "continuation_guide",
}


def load_settings(env_file: Path | None = None) -> Settings:
    """Read settings from the process environment.

    Values already present in the environment win over the .env file.
    """
    load_dotenv(env_file)

    fields: dict[str, object] = {}
    for var, field in _ENV_FIELDS.items():
        value = os.getenv(var)
        if value:
            fields[field] = value

    overrides = os.getenv("SESSION_GUIDE_OVERRIDES")
    if overrides:
        try:
            fields["guide_overrides"] = json.loads(overrides)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"SESSION_GUIDE_OVERRIDES is not valid JSON: {e}") from e

    try:
        return Settings.model_validate(fields)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e

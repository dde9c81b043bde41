"""Core domain models.

Every record that crosses the repository or generator boundary is parsed
into one of these types. Pydantic is used for validation and serialisation
at every data boundary; wire keys are camelCase, attributes are snake_case.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PARTY_CLASSES = ["Paladin", "Wizard", "Rogue", "Cleric", "Druid"]


class PartyInfo(BaseModel):
    """Party composition sent to the planner."""

    level: int = Field(default=1, ge=1)
    size: int = Field(default=4, ge=1)
    classes: list[str] = Field(default_factory=lambda: list(DEFAULT_PARTY_CLASSES))


# ---------------------------------------------------------------------------
# Record properties
# ---------------------------------------------------------------------------

class PlanProperties(BaseModel):
    """Properties of a "Session Plan" record.

    Generated plans may carry keys beyond the ones declared here; they are
    kept so the full plan can be forwarded as context to later generations.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    campaign_id: str = Field(alias="campaignId", min_length=1)
    session_number: int = Field(alias="sessionNumber", ge=0)
    title: str
    party_info: PartyInfo | None = Field(default=None, alias="partyInfo")
    objectives: list[str] = Field(default_factory=list)
    content: str = ""
    session_guide: str | None = Field(default=None, alias="sessionGuide")


class SessionProperties(BaseModel):
    """Properties of a "Session Summary" record."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    campaign_id: str = Field(alias="campaignId", min_length=1)
    session_number: int = Field(alias="sessionNumber", ge=0)
    summary: str


# ---------------------------------------------------------------------------
# Store records
# ---------------------------------------------------------------------------

class ContentType(BaseModel):
    """A resolved record type handle."""

    id: str
    name: str
    object_schema: dict[str, Any] | None = None


class StoredObject(BaseModel):
    """A record as returned by the repository, properties untyped."""

    id: str
    name: str = ""
    type: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)
    parent: str | None = None
    text: str | None = None


class Plan(StoredObject):
    properties: PlanProperties  # type: ignore[assignment]

    @property
    def session_number(self) -> int:
        return self.properties.session_number


class Session(StoredObject):
    properties: SessionProperties  # type: ignore[assignment]

    @property
    def session_number(self) -> int:
        return self.properties.session_number


class ObjectPayload(BaseModel):
    """Creation payload for a new record."""

    type: str
    properties: dict[str, Any]
    name: str
    parent: str | None = None
    text: str | None = None


# ---------------------------------------------------------------------------
# Call options and results
# ---------------------------------------------------------------------------

class ExecutionConfig(BaseModel):
    """Per-call model/environment override for an interaction."""

    environment: str | None = None
    model: str | None = None


class SessionOptions(BaseModel):
    """Caller-supplied options for planning and playing sessions."""

    model: str | None = None
    environment: str | None = None
    theme: str | None = None
    level: int = Field(default=1, ge=1)
    size: int = Field(default=4, ge=1)
    classes: list[str] = Field(default_factory=lambda: list(DEFAULT_PARTY_CLASSES))
    objectives: list[str] = Field(default_factory=list)

    def execution_config(self) -> ExecutionConfig:
        return ExecutionConfig(environment=self.environment, model=self.model)

    def party_info(self) -> PartyInfo:
        return PartyInfo(level=self.level, size=self.size, classes=list(self.classes))


class ReconciliationResult(BaseModel):
    """Plans and sessions of one campaign, ordered by session number."""

    plans: list[Plan]
    sessions: list[Session]
    unplayed_plans: list[Plan]


class TurnReport(BaseModel):
    """Outcome of one simulated turn."""

    turn: int
    plan: Plan
    session: Session
    reused_plan: bool

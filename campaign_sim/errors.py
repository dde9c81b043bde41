"""Error types raised by the adapters and the campaign pipeline.

Nothing here retries: every error propagates to the caller of the failing
operation and ends the current command.
"""


class CampaignError(RuntimeError):
    """Base class for every failure surfaced by campaign_sim."""


class ConfigurationError(CampaignError):
    """Connection parameters or settings are missing or invalid."""


class SchemaUnavailable(ConfigurationError):
    """A plan or session record type cannot be resolved in the content store."""


class MissingIdentifier(CampaignError, ValueError):
    """A required campaign id was not provided."""


class GenerationFailed(CampaignError):
    """The content generator errored or returned an unusable result."""


class PersistenceFailed(CampaignError):
    """The record repository errored while reading or writing."""

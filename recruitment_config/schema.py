"""
WorkflowConfig schema.

Frozen dataclasses for the recruitment workflow configuration.  YAML sets
are parsed into these types by the loader, environment overrides are folded
in, and the validator checks the result before ``get_active_config()``
returns it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

FINALIZE_POLICIES = ("require_complete_checklist", "always_allow_pass")


@dataclass(frozen=True)
class DatabaseDef:
    url: str = "sqlite:///recruitment.db"
    echo: bool = False


@dataclass(frozen=True)
class ChannelsDef:
    """Transport destinations.  None disables the feature that needs it."""

    guild_id: str | None = None
    recommend_channel_id: str | None = None
    polls_channel_id: str | None = None
    ping_role_id: str | None = None


@dataclass(frozen=True)
class ProofDef:
    max_bytes: int = 8 * 1024 * 1024
    content_types: tuple[str, ...] = (
        "image/png",
        "image/jpeg",
        "image/jpg",
        "image/webp",
        "image/gif",
    )


@dataclass(frozen=True)
class CriterionDef:
    key: str
    label: str


@dataclass(frozen=True)
class BackgroundCheckDef:
    finalize_policy: str = "require_complete_checklist"
    criteria: tuple[CriterionDef, ...] = ()


@dataclass(frozen=True)
class ObservationsDef:
    slot_count: int = 3
    include_subject_username: bool = False


@dataclass(frozen=True)
class WorkflowConfig:
    """The runtime configuration artifact."""

    config_id: str
    version: int
    database: DatabaseDef = field(default_factory=DatabaseDef)
    channels: ChannelsDef = field(default_factory=ChannelsDef)
    allowed_role_ids: tuple[str, ...] = ()
    handoff_ttl_seconds: float = 180.0
    proof: ProofDef = field(default_factory=ProofDef)
    background_check: BackgroundCheckDef = field(default_factory=BackgroundCheckDef)
    observations: ObservationsDef = field(default_factory=ObservationsDef)
    vote_reactions: tuple[str, ...] = ("✅", "❌")
    log_level: str = "INFO"
    requirements_text: str = ""
    checksum: str = ""

"""
Configuration Validator (``recruitment_config.validator``).

Responsibility
--------------
Checks a parsed ``WorkflowConfig`` before it is handed out.

Invariants enforced
-------------------
* Checklist criteria: at least one, keys unique and non-empty.
* Finalize policy is one of ``FINALIZE_POLICIES``.
* Observation slot count >= 1, handoff TTL > 0, proof size limit > 0.
* Exactly two mirror reactions (yes, no).

Failure modes
-------------
* Errors  -> ``get_active_config()`` raises ``ConfigValidationError``.
* Warnings  -> logged; a config with only warnings is usable.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from recruitment_config.schema import FINALIZE_POLICIES, WorkflowConfig

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigValidationError(ValueError):
    """Configuration failed validation."""

    code: str = "CONFIG_VALIDATION_FAILED"

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


@dataclass
class ConfigValidationResult:
    """``is_valid`` is True only when ``errors`` is empty."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_configuration(config: WorkflowConfig) -> ConfigValidationResult:
    result = ConfigValidationResult()

    criteria = config.background_check.criteria
    if not criteria:
        result.add_error("background_check.criteria must list at least one criterion")
    keys = [c.key for c in criteria]
    if any(not k.strip() for k in keys):
        result.add_error("background_check.criteria keys must be non-empty")
    duplicates = sorted({k for k in keys if keys.count(k) > 1})
    if duplicates:
        result.add_error(
            f"background_check.criteria has duplicate keys: {', '.join(duplicates)}"
        )
    if any(":" in k for k in keys):
        result.add_error("background_check.criteria keys must not contain ':'")

    if config.background_check.finalize_policy not in FINALIZE_POLICIES:
        result.add_error(
            f"Unknown finalize_policy {config.background_check.finalize_policy!r} "
            f"(expected one of {', '.join(FINALIZE_POLICIES)})"
        )

    if config.observations.slot_count < 1:
        result.add_error(
            f"observations.slot_count must be >= 1, got {config.observations.slot_count}"
        )
    if config.handoff_ttl_seconds <= 0:
        result.add_error(
            f"handoff.ttl_seconds must be positive, got {config.handoff_ttl_seconds}"
        )
    if config.proof.max_bytes <= 0:
        result.add_error(f"proof.max_bytes must be positive, got {config.proof.max_bytes}")
    if len(config.vote_reactions) != 2:
        result.add_error(
            f"mirror.reactions must list exactly two markers, got {len(config.vote_reactions)}"
        )
    if config.log_level not in _LOG_LEVELS:
        result.add_error(f"Unknown logging.level {config.log_level!r}")

    if config.channels.recommend_channel_id is None:
        result.add_warning("channels.recommend_channel_id is not set; /recommend cannot post")
    if config.channels.polls_channel_id is None:
        result.add_warning("channels.polls_channel_id is not set; completed records are not mirrored")
    if not config.requirements_text.strip():
        result.add_warning("requirements_text is empty")

    return result

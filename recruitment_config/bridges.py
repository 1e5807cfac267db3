"""
Config -> Kernel Bridges.

Functions that convert a ``WorkflowConfig`` into kernel-compatible inputs.
These live in recruitment_config (the producer) because the kernel must
NEVER import recruitment_config.

Usage:
    from recruitment_config.bridges import build_checklist, build_observation_settings

    config = get_active_config()
    checklist = build_checklist(config)
    settings = build_observation_settings(config)
"""

from __future__ import annotations

from recruitment_config.schema import WorkflowConfig
from recruitment_kernel.domain.background_check import FinalizePolicy
from recruitment_kernel.domain.checklist import Checklist, ChecklistCriterion
from recruitment_kernel.domain.observation import ObservationSettings
from recruitment_kernel.domain.recommendation import ProofPolicy
from recruitment_kernel.services.observation_engine import MirrorSettings
from recruitment_kernel.services.session_stash import SessionStash


def build_checklist(config: WorkflowConfig) -> Checklist:
    return Checklist(
        tuple(
            ChecklistCriterion(c.key, c.label)
            for c in config.background_check.criteria
        )
    )


def build_finalize_policy(config: WorkflowConfig) -> FinalizePolicy:
    return FinalizePolicy(config.background_check.finalize_policy)


def build_observation_settings(config: WorkflowConfig) -> ObservationSettings:
    return ObservationSettings(
        slot_count=config.observations.slot_count,
        include_subject_username=config.observations.include_subject_username,
    )


def build_proof_policy(config: WorkflowConfig) -> ProofPolicy:
    return ProofPolicy(
        max_bytes=config.proof.max_bytes,
        content_types=frozenset(config.proof.content_types),
    )


def build_mirror_settings(config: WorkflowConfig) -> MirrorSettings | None:
    """None when no polls channel is configured (mirroring disabled)."""
    if config.channels.polls_channel_id is None:
        return None
    return MirrorSettings(
        channel_id=config.channels.polls_channel_id,
        reactions=config.vote_reactions,
        ping_role_id=config.channels.ping_role_id,
    )


def build_session_stash(config: WorkflowConfig) -> SessionStash:
    return SessionStash(default_ttl=config.handoff_ttl_seconds)

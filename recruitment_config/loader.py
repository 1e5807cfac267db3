"""
Configuration Loader (``recruitment_config.loader``).

Responsibility
--------------
Loads a YAML configuration set, parses it into the frozen
``recruitment_config.schema`` types and folds environment overrides on top.
This is internal tooling; runtime callers go through
``recruitment_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Environment overrides are applied after parsing and before validation, so
  an override can never bypass the validator.
* ``compute_checksum`` is computed over the parsed YAML plus the applied
  overrides; the same inputs always yield the same checksum.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Non-integer ``OBSERVATION_SLOT_COUNT``  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from recruitment_config.schema import (
    BackgroundCheckDef,
    ChannelsDef,
    CriterionDef,
    DatabaseDef,
    ObservationsDef,
    ProofDef,
    WorkflowConfig,
)

# Environment variable -> (section, field) it overrides.
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "DATABASE_URL": ("database", "url"),
    "DEPT_GUILD_ID": ("channels", "guild_id"),
    "RECOMMEND_CHANNEL_ID": ("channels", "recommend_channel_id"),
    "RECRUITMENT_POLLS_CHANNEL_ID": ("channels", "polls_channel_id"),
    "PING_ROLE_ID": ("channels", "ping_role_id"),
    "OBSERVATION_SLOT_COUNT": ("observations", "slot_count"),
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _opt_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _str_tuple(values: Any) -> tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = values.split(",")
    return tuple(s for s in (str(v).strip() for v in values) if s)


def parse_config(data: dict[str, Any]) -> WorkflowConfig:
    """Parse a ``WorkflowConfig`` from a YAML mapping."""
    database = data.get("database") or {}
    channels = data.get("channels") or {}
    handoff = data.get("handoff") or {}
    proof = data.get("proof") or {}
    bg = data.get("background_check") or {}
    obs = data.get("observations") or {}
    mirror = data.get("mirror") or {}
    logging_section = data.get("logging") or {}

    proof_defaults = ProofDef()
    return WorkflowConfig(
        config_id=str(data.get("config_id", "recruitment")),
        version=int(data.get("version", 1)),
        database=DatabaseDef(
            url=str(database.get("url", DatabaseDef.url)),
            echo=bool(database.get("echo", False)),
        ),
        channels=ChannelsDef(
            guild_id=_opt_str(channels.get("guild_id")),
            recommend_channel_id=_opt_str(channels.get("recommend_channel_id")),
            polls_channel_id=_opt_str(channels.get("polls_channel_id")),
            ping_role_id=_opt_str(channels.get("ping_role_id")),
        ),
        allowed_role_ids=_str_tuple(data.get("allowed_role_ids")),
        handoff_ttl_seconds=float(handoff.get("ttl_seconds", 180)),
        proof=ProofDef(
            max_bytes=int(proof.get("max_bytes", proof_defaults.max_bytes)),
            content_types=(
                _str_tuple(proof["content_types"])
                if "content_types" in proof
                else proof_defaults.content_types
            ),
        ),
        background_check=BackgroundCheckDef(
            finalize_policy=str(
                bg.get("finalize_policy", BackgroundCheckDef.finalize_policy)
            ),
            criteria=tuple(
                CriterionDef(key=str(c["key"]), label=str(c["label"]))
                for c in bg.get("criteria") or ()
            ),
        ),
        observations=ObservationsDef(
            slot_count=int(obs.get("slot_count", ObservationsDef.slot_count)),
            include_subject_username=bool(obs.get("include_subject_username", False)),
        ),
        vote_reactions=_str_tuple(mirror.get("reactions")) or ("✅", "❌"),
        log_level=str(logging_section.get("level", "INFO")).upper(),
        requirements_text=str(data.get("requirements_text", "")),
    )


def apply_env_overrides(
    config: WorkflowConfig,
    environ: Mapping[str, str],
) -> tuple[WorkflowConfig, dict[str, str]]:
    """
    Fold environment overrides into ``config``.

    Empty variables are ignored.  ``ALLOWED_ROLE_IDS`` is a comma separated
    list; ``VOTE_YES_EMOJI`` / ``VOTE_NO_EMOJI`` replace the two mirror
    reactions.

    Returns:
        The new config and the overrides that were applied.
    """
    applied: dict[str, str] = {}
    sections: dict[str, Any] = {
        "database": config.database,
        "channels": config.channels,
        "observations": config.observations,
    }

    for var, (section, name) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if not raw:
            continue
        value: Any = raw.strip()
        if name == "slot_count":
            try:
                value = int(value)
            except ValueError as exc:
                raise ValueError(f"{var} must be an integer, got {raw!r}") from exc
        sections[section] = replace(sections[section], **{name: value})
        applied[var] = raw

    updates: dict[str, Any] = dict(sections)

    roles = environ.get("ALLOWED_ROLE_IDS")
    if roles:
        updates["allowed_role_ids"] = _str_tuple(roles)
        applied["ALLOWED_ROLE_IDS"] = roles

    yes, no = environ.get("VOTE_YES_EMOJI"), environ.get("VOTE_NO_EMOJI")
    if yes or no:
        current = config.vote_reactions + ("✅", "❌")[len(config.vote_reactions):]
        updates["vote_reactions"] = (yes or current[0], no or current[1])
        if yes:
            applied["VOTE_YES_EMOJI"] = yes
        if no:
            applied["VOTE_NO_EMOJI"] = no

    return replace(config, **updates), applied


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()

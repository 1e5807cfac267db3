"""
recruitment_config -- single public entrypoint for workflow configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component may read configuration
    files or environment variables directly.

Architecture position:
    Configuration.  This package sits above ``recruitment_kernel`` and below
    ``recruitment_services``.  The kernel MUST NEVER import from
    ``recruitment_config``; ``bridges`` translate the config into kernel
    inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Validation: the returned config has passed ``validate_configuration``
      after environment overrides were applied.

Failure modes:
    - ``FileNotFoundError`` -- the configuration set does not exist.
    - ``ConfigValidationError`` -- validation failed.
    - ``ValueError`` -- an environment override could not be parsed.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path

from recruitment_config.loader import (
    apply_env_overrides,
    compute_checksum,
    load_yaml_file,
    parse_config,
)
from recruitment_config.schema import WorkflowConfig
from recruitment_config.validator import ConfigValidationError, validate_configuration

_logger = logging.getLogger("recruitment_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_PATH_ENV = "RECRUITMENT_CONFIG"

__all__ = [
    "ConfigValidationError",
    "WorkflowConfig",
    "get_active_config",
]


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> WorkflowConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the YAML set: ``config_path``, then the
    ``RECRUITMENT_CONFIG`` variable, then ``sets/default.yaml``.

    Args:
        config_path: Explicit YAML configuration set.
        environ: Environment to read overrides from.  Defaults to
            ``os.environ``.

    Raises:
        FileNotFoundError: The configuration set does not exist.
        ConfigValidationError: Validation failed.
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_PATH)

    data = load_yaml_file(path)
    config, applied = apply_env_overrides(parse_config(data), env)
    config = replace(
        config,
        checksum=compute_checksum({"set": data, "overrides": applied}),
    )

    validation = validate_configuration(config)
    if not validation.is_valid:
        raise ConfigValidationError(validation.errors)
    for warning in validation.warnings:
        _logger.warning("config_warning", extra={"warning": warning})

    _logger.info(
        "RECRUITMENT_CONFIG_TRACE",
        extra={
            "trace_type": "RECRUITMENT_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "env_overrides": sorted(applied),
            "finalize_policy": config.background_check.finalize_policy,
            "slot_count": config.observations.slot_count,
        },
    )
    return config

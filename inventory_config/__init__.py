"""
inventory_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration.  This package sits above ``inventory_kernel`` and below
    ``inventory_services``.  The kernel MUST NEVER import from
    ``inventory_config``; bridges in this package translate the config into
    kernel-compatible inputs.

Environment overrides:
    - ``INVENTORY_DATABASE_URL`` replaces ``database.url``.
    - ``INVENTORY_LOG_LEVEL`` replaces ``log_level``.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``inventory_config_loaded`` log entry with the config_id, version and
    checksum.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path

from inventory_config.loader import load_engine_config
from inventory_config.schema import (
    DatabaseSettings,
    EngineConfig,
    IdentifierPolicy,
    OccupancyPolicy,
)

_logger = logging.getLogger("inventory_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

DATABASE_URL_ENV = "INVENTORY_DATABASE_URL"
LOG_LEVEL_ENV = "INVENTORY_LOG_LEVEL"


def get_active_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> EngineConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML set to load.  Defaults to ``sets/default.yaml``.
        environ: Environment used for overrides.  Defaults to ``os.environ``.

    Raises:
        FileNotFoundError: The configuration file does not exist.
        ValueError: The configuration is structurally invalid.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    env = os.environ if environ is None else environ

    config = load_engine_config(path)

    database_url = env.get(DATABASE_URL_ENV)
    if database_url:
        config = replace(config, database=replace(config.database, url=database_url))
    level = env.get(LOG_LEVEL_ENV)
    if level:
        level = level.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown {LOG_LEVEL_ENV}: {level}")
        config = replace(config, log_level=level)

    _logger.info(
        "inventory_config_loaded",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "database_url_overridden": bool(database_url),
        },
    )
    return config


__all__ = [
    "DatabaseSettings",
    "EngineConfig",
    "IdentifierPolicy",
    "OccupancyPolicy",
    "get_active_config",
]

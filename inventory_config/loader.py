"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen dataclasses of
``inventory_config.schema``.  Runtime callers go through
``inventory_config.get_active_config()`` instead of calling this directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Out-of-range values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import (
    DatabaseSettings,
    EngineConfig,
    IdentifierPolicy,
    OccupancyPolicy,
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of the parsed YAML, for change detection."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    return DatabaseSettings(
        url=data.get("url", DatabaseSettings.url),
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", DatabaseSettings.pool_size)),
        max_overflow=int(data.get("max_overflow", DatabaseSettings.max_overflow)),
        pool_pre_ping=bool(data.get("pool_pre_ping", True)),
        pool_timeout=int(data.get("pool_timeout", DatabaseSettings.pool_timeout)),
        pool_recycle=int(data.get("pool_recycle", DatabaseSettings.pool_recycle)),
    )


def parse_identifiers(data: dict[str, Any]) -> IdentifierPolicy:
    """Parse the ``identifiers`` section; widths must be positive."""
    policy = IdentifierPolicy(
        prefix=str(data.get("prefix", IdentifierPolicy.prefix)),
        serial_width=int(data.get("serial_width", IdentifierPolicy.serial_width)),
        code_length=int(data.get("code_length", IdentifierPolicy.code_length)),
        year_placeholder=str(
            data.get("year_placeholder", IdentifierPolicy.year_placeholder)
        ),
        code_placeholder=str(
            data.get("code_placeholder", IdentifierPolicy.code_placeholder)
        ),
        location_placeholder=str(
            data.get("location_placeholder", IdentifierPolicy.location_placeholder)
        ),
        placeholder_markers=tuple(
            str(m) for m in data.get("placeholder_markers", ("AUTO", "???"))
        ),
    )
    if policy.serial_width < 1 or policy.code_length < 1:
        raise ValueError(
            "identifiers.serial_width and identifiers.code_length must be positive"
        )
    if not policy.prefix:
        raise ValueError("identifiers.prefix must not be empty")
    return policy


def parse_occupancy(data: dict[str, Any]) -> OccupancyPolicy:
    default_capacity = int(data.get("default_capacity", OccupancyPolicy.default_capacity))
    if not 1 <= default_capacity <= 10000:
        raise ValueError(
            f"occupancy.default_capacity must be between 1 and 10000, got {default_capacity}"
        )
    return OccupancyPolicy(default_capacity=default_capacity)


def parse_engine_config(data: dict[str, Any]) -> EngineConfig:
    """
    Parse a full configuration document.

    ``config_id`` and ``version`` are required; every section is optional
    and falls back to the schema defaults.
    """
    log_level = str(data.get("log_level", "INFO")).upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log_level: {log_level}")
    return EngineConfig(
        config_id=data["config_id"],
        version=int(data["version"]),
        database=parse_database(data.get("database") or {}),
        identifiers=parse_identifiers(data.get("identifiers") or {}),
        occupancy=parse_occupancy(data.get("occupancy") or {}),
        log_level=log_level,
        checksum=compute_checksum(data),
    )


def load_engine_config(path: Path) -> EngineConfig:
    return parse_engine_config(load_yaml_file(path))

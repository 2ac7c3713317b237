"""
Config -> Kernel Bridges.

Functions that convert an ``EngineConfig`` into kernel-compatible inputs.
These live in inventory_config (the producer) because the kernel must NEVER
import inventory_config.

Usage:
    from inventory_config.bridges import build_identifier_format, engine_kwargs

    config = get_active_config()
    init_engine_from_url(**engine_kwargs(config))
    fmt = build_identifier_format(config)
"""

from __future__ import annotations

import logging
from typing import Any

from inventory_config.schema import EngineConfig
from inventory_kernel.domain.uniqueid import IdentifierFormat


def build_identifier_format(config: EngineConfig) -> IdentifierFormat:
    policy = config.identifiers
    return IdentifierFormat(
        prefix=policy.prefix,
        serial_width=policy.serial_width,
        code_length=policy.code_length,
        year_placeholder=policy.year_placeholder,
        code_placeholder=policy.code_placeholder,
        location_placeholder=policy.location_placeholder,
        placeholder_markers=policy.placeholder_markers,
    )


def engine_kwargs(config: EngineConfig) -> dict[str, Any]:
    """Keyword arguments for ``inventory_kernel.db.init_engine_from_url``."""
    db = config.database
    return {
        "database_url": db.url,
        "echo": db.echo,
        "pool_size": db.pool_size,
        "max_overflow": db.max_overflow,
        "pool_pre_ping": db.pool_pre_ping,
        "pool_timeout": db.pool_timeout,
        "pool_recycle": db.pool_recycle,
    }


def log_level(config: EngineConfig) -> int:
    """The configured level as a ``logging`` constant."""
    return logging.getLevelName(config.log_level)

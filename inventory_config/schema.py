"""
Configuration Schema (``inventory_config.schema``).

Responsibility
--------------
Frozen dataclasses describing the runtime configuration of the inventory
engine.  These are pure data definitions; parsing lives in
``inventory_config.loader`` and translation into kernel inputs lives in
``inventory_config.bridges``.

Architecture position
---------------------
**Config layer**.  Zero I/O, zero side effects.  Imports nothing from the
kernel or services.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection and pool settings passed to ``init_engine_from_url``."""

    url: str = "sqlite:///inventory.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_pre_ping: bool = True
    pool_timeout: int = 30
    pool_recycle: int = 1800


@dataclass(frozen=True)
class IdentifierPolicy:
    """Layout of allocated ``unique_id`` values (``IHUB/--/---/--/001``)."""

    prefix: str = "IHUB"
    serial_width: int = 3
    code_length: int = 3
    year_placeholder: str = "--"
    code_placeholder: str = "---"
    location_placeholder: str = "--"
    placeholder_markers: tuple[str, ...] = ("AUTO", "???")


@dataclass(frozen=True)
class OccupancyPolicy:
    """Defaults applied when locations are registered."""

    default_capacity: int = 50


@dataclass(frozen=True)
class EngineConfig:
    """
    The complete runtime configuration.

    ``config_id`` and ``version`` identify the YAML set it was built from;
    they are emitted in the ``inventory_config_loaded`` trace.
    """

    config_id: str
    version: int
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    identifiers: IdentifierPolicy = field(default_factory=IdentifierPolicy)
    occupancy: OccupancyPolicy = field(default_factory=OccupancyPolicy)
    log_level: str = "INFO"
    checksum: str = ""

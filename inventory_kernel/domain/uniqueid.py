"""
Unique identifiers -- formatting of human-facing item ids.

Responsibility:
    Builds the ``PREFIX/year/code/location/serial`` identifier printed on item
    labels, decides when a caller-supplied id is a placeholder that must be
    replaced by an allocated one, and normalizes explicit ids.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The serial number
    comes from services/sequence_service.py; this module only formats it.

Invariants enforced:
    - Every allocated identifier ends with the serial zero-padded to at
      least three digits.  Serials above 999 widen, they never truncate.
    - Persisted identifiers are upper-case with surrounding whitespace removed.
"""

import re
from dataclasses import dataclass

_NON_LETTERS = re.compile(r"[^A-Za-z]")


@dataclass(frozen=True)
class IdentifierFormat:
    """
    Layout of an allocated identifier.

    Contract:
        Each segment falls back to its placeholder when the source value
        is missing.  Defaults reproduce ``IHUB/--/---/--/001``.
    """

    prefix: str = "IHUB"
    serial_width: int = 3
    code_length: int = 3
    year_placeholder: str = "--"
    code_placeholder: str = "---"
    location_placeholder: str = "--"
    placeholder_markers: tuple[str, ...] = ("AUTO", "???")


DEFAULT_FORMAT = IdentifierFormat()


def generate_asset_code(asset_name: str | None, fmt: IdentifierFormat = DEFAULT_FORMAT) -> str:
    """
    Derive the asset code segment from an asset name.

    Keeps letters only, takes the first ``code_length`` of them, upper-cases,
    and right-pads with ``-``.

        >>> generate_asset_code("Laptop 15in")
        'LAP'
        >>> generate_asset_code("4K")
        'K--'
    """
    if not asset_name:
        return fmt.code_placeholder
    letters = _NON_LETTERS.sub("", asset_name)[: fmt.code_length].upper()
    return letters.ljust(fmt.code_length, "-")


def format_serial(serial: int, fmt: IdentifierFormat = DEFAULT_FORMAT) -> str:
    return str(serial).zfill(fmt.serial_width)


def format_unique_id(
    serial: int,
    financial_year: str | None = None,
    asset_name: str | None = None,
    location_name: str | None = None,
    fmt: IdentifierFormat = DEFAULT_FORMAT,
) -> str:
    """Assemble an allocated identifier from its segments."""
    year = financial_year.strip() if financial_year and financial_year.strip() else None
    location = location_name.strip() if location_name and location_name.strip() else None
    segments = [
        fmt.prefix,
        year or fmt.year_placeholder,
        generate_asset_code(asset_name, fmt),
        location or fmt.location_placeholder,
        format_serial(serial, fmt),
    ]
    return "/".join(segments)


def is_placeholder(unique_id: str | None, fmt: IdentifierFormat = DEFAULT_FORMAT) -> bool:
    """
    Whether a supplied id asks for allocation rather than naming an id.

    Blank values, and values containing any placeholder marker
    (case-insensitive), are placeholders.
    """
    if unique_id is None:
        return True
    candidate = unique_id.strip().upper()
    if not candidate:
        return True
    return any(marker in candidate for marker in fmt.placeholder_markers)


def normalize_unique_id(unique_id: str) -> str:
    """Canonical stored form of an explicit id."""
    return unique_id.strip().upper()

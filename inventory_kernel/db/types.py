"""
Module: inventory_kernel.db.types
Responsibility: Shared column types and lengths.  Centralizes precision and
    enum storage so that every model uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, services/,
    and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Costs use Decimal with explicit precision, never float.
    - Enums persist by value as VARCHAR plus a CHECK constraint, identical
      on PostgreSQL and SQLite.
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from sqlalchemy import Numeric
from sqlalchemy import Enum as SAEnum

# Column lengths
SHORT_CODE_LENGTH = 50
NAME_LENGTH = 200
LONG_TEXT_LENGTH = 1000
UNIQUE_ID_LENGTH = 120

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def money_type() -> Numeric:
    return Numeric(38, 9)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    Used for ledger total_cost (unit cost * quantity) so that statistics
    sum identical values on every backend.
    """
    quantize_str = "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def enum_type(enum_cls: type[Enum], name: str, length: int = 20) -> SAEnum:
    """
    Column type persisting a ``str`` enum by value.

    Stored as VARCHAR with a CHECK constraint (no native ENUM), and loaded
    back as the enum member.
    """
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        length=length,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )

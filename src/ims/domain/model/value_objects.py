"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Union

from ims.domain.exceptions import ValidationError


@dataclass(frozen=True)
class Money:
    """Decimal amount in a single currency (Rwandan francs unless stated)."""

    amount: Decimal
    currency: str = "RWF"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount.is_signed():
            raise ValidationError(f"Money amount cannot be negative, got {self.amount}")

    @staticmethod
    def of(amount: str | float | int | Decimal, currency: str = "RWF") -> Money:
        try:
            return Money(Decimal(str(amount)), currency)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def zero(currency: str = "RWF") -> Money:
        return Money(Decimal(0), currency)

    def __add__(self, other: Money) -> Money:
        return Money(self.amount + self._same_currency(other).amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        difference = self.amount - self._same_currency(other).amount
        if difference < 0:
            raise ValidationError(
                f"Cannot subtract {other} from {self}: the result would be negative"
            )
        return Money(difference, self.currency)

    def __mul__(self, factor: int) -> Money:
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def __le__(self, other: Money) -> bool:
        return self.amount <= self._same_currency(other).amount

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"

    def _same_currency(self, other: Money) -> Money:
        if self.currency != other.currency:
            raise ValidationError(f"Cannot combine {self.currency} with {other.currency}")
        return other


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot order or move zero or negative units.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


# ---------------------------------------------------------------------------
# Ledger endpoints
# ---------------------------------------------------------------------------


class LocationKind(Enum):
    SHOP = "shop"
    WAREHOUSE = "warehouse"


@dataclass(frozen=True)
class LocationRef:
    """Identifies one shop or warehouse; also a transfer endpoint."""

    kind: LocationKind
    location_id: str

    def __str__(self) -> str:
        return f"{self.kind.value} '{self.location_id}'"

    @staticmethod
    def shop(location_id: str) -> LocationRef:
        return LocationRef(LocationKind.SHOP, location_id)

    @staticmethod
    def warehouse(location_id: str) -> LocationRef:
        return LocationRef(LocationKind.WAREHOUSE, location_id)

    @staticmethod
    def parse(kind: str, location_id: str) -> LocationRef:
        try:
            return LocationRef(LocationKind(kind.lower()), location_id)
        except ValueError as exc:
            raise ValidationError(
                f"Location type must be shop or warehouse, got {kind!r}"
            ) from exc


@dataclass(frozen=True)
class PoolEndpoint:
    """The unassigned stock of a product."""

    def __str__(self) -> str:
        return "pool"


@dataclass(frozen=True)
class SinkEndpoint:
    """Units leaving the system (sold)."""

    def __str__(self) -> str:
        return "sink"


POOL = PoolEndpoint()
SINK = SinkEndpoint()

Endpoint = Union[PoolEndpoint, LocationRef, SinkEndpoint]


def parse_endpoint(text: str) -> Endpoint:
    """Parse 'pool', 'shop:<id>' or 'warehouse:<id>' into an endpoint."""
    value = text.strip()
    if value.lower() == "pool":
        return POOL
    if ":" not in value:
        raise ValidationError(
            f"Invalid endpoint '{text}'. Expected 'pool', 'shop:<id>' or 'warehouse:<id>'."
        )
    kind, location_id = value.split(":", 1)
    if not location_id.strip():
        raise ValidationError(f"Invalid endpoint '{text}': missing location id")
    return LocationRef.parse(kind.strip(), location_id.strip())

"""Results returned by ledger operations."""

from __future__ import annotations

from dataclasses import dataclass, field

from ims.domain.model.ledger import LedgerEntry
from ims.domain.model.value_objects import Endpoint, LocationRef


@dataclass(frozen=True)
class EndpointBalance:
    endpoint: Endpoint
    before: int
    after: int


@dataclass(frozen=True)
class TransferResult:
    product_id: str
    quantity: int
    source: EndpointBalance
    destination: EndpointBalance
    entries: list[LedgerEntry] = field(default_factory=list)


@dataclass(frozen=True)
class AssignmentResult:
    """Outcome of setting a location's allocation to a target quantity."""

    location: LocationRef
    product_id: str
    previous_quantity: int
    quantity: int
    pool_before: int
    pool_after: int
    created: bool = False
    topped_up: int = 0
    produced_units: int = 0
    entries: list[LedgerEntry] = field(default_factory=list)

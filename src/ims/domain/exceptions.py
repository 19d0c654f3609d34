"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Every rejection carries the quantities involved; ``to_dict()`` exposes them
to callers that render their own messages.
"""

from __future__ import annotations

from typing import Any


class DomainException(Exception):
    """Base class for all domain errors."""

    code = "domain_error"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": str(self)}


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    code = "validation_error"


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    code = "not_found"


class PermissionDeniedError(DomainException):
    """The acting user's role does not allow the operation."""

    code = "permission_denied"


class ConcurrencyConflictError(DomainException):
    """The store could not apply the change consistently; the caller may retry."""

    code = "concurrency_conflict"


class InsufficientStockError(ValidationError):
    """Not enough units at the source endpoint.

    For batch reservations ``shortfalls`` lists every item that could not be
    covered, so the caller sees all of them at once.
    """

    code = "insufficient_stock"

    def __init__(
        self,
        message: str,
        *,
        product_id: str | None = None,
        requested: int = 0,
        available: int = 0,
        endpoint: str | None = None,
        shortfalls: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.endpoint = endpoint
        self.shortfalls = shortfalls or []

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            product_id=self.product_id,
            requested=self.requested,
            available=self.available,
            endpoint=self.endpoint,
        )
        if self.shortfalls:
            data["shortfalls"] = self.shortfalls
        return data


class InsufficientShopStockError(InsufficientStockError):
    """A shop allocation cannot cover an eager sale."""

    code = "insufficient_shop_stock"


class InsufficientProductionInputError(ValidationError):
    """A production input (bulk or packaging) is short."""

    code = "insufficient_production_input"

    def __init__(self, message: str, *, required: int, available: int) -> None:
        super().__init__(message)
        self.required = required
        self.available = available

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(required=self.required, available=self.available)
        return data


class InsufficientBulkMaterialError(InsufficientProductionInputError):
    code = "insufficient_bulk_material"


class InsufficientPackagingError(InsufficientProductionInputError):
    code = "insufficient_packaging"


class UnsoldStockRemainingError(ValidationError):
    """A shop allocation may not drop below its unsold remainder."""

    code = "unsold_stock_remaining"

    def __init__(self, remaining: int, requested: int) -> None:
        super().__init__(
            f"Shop must sell its current stock ({remaining} units remaining) "
            f"before reducing the assignment to {requested}. "
            f"Replenishment (increasing stock) is allowed."
        )
        self.remaining = remaining
        self.requested = requested

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(remaining=self.remaining, requested=self.requested)
        return data


class NotAssignedToLocationError(ValidationError):
    code = "not_assigned_to_location"

    def __init__(self, product_id: str, location: str) -> None:
        super().__init__(f"Product '{product_id}' is not assigned to {location}")
        self.product_id = product_id
        self.location = location

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(product_id=self.product_id, location=self.location)
        return data


class InvalidTransitionError(ValidationError):
    code = "invalid_transition"

    def __init__(self, from_status: str, to_status: str, allowed: list[str]) -> None:
        allowed_text = ", ".join(allowed) if allowed else "none (terminal state)"
        super().__init__(
            f"Cannot transition from '{from_status}' to '{to_status}'. "
            f"Allowed transitions: {allowed_text}"
        )
        self.from_status = from_status
        self.to_status = to_status
        self.allowed = allowed

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(from_status=self.from_status, to_status=self.to_status)
        return data

"""Role gate for stock and order operations.

Authentication happens outside the engine; callers pass the resolved
``Actor``.  Handlers called without an actor treat the gate as already
enforced by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ims.domain.exceptions import PermissionDeniedError, ValidationError
from ims.domain.model.value_objects import Endpoint, LocationKind, LocationRef


class Role(Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    CASHIER = "cashier"


STOCK_ADMINS = (Role.ADMIN, Role.MANAGER)


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: Role
    shop_id: str | None = None

    @staticmethod
    def of(user_id: str, role: str, shop_id: str | None = None) -> Actor:
        try:
            return Actor(user_id, Role(role.lower()), shop_id)
        except ValueError as exc:
            raise ValidationError(
                f"Role must be one of {', '.join(r.value for r in Role)}, got {role!r}"
            ) from exc


def require_role(actor: Actor | None, roles: tuple[Role, ...], action: str) -> None:
    if actor is None or actor.role in roles:
        return
    raise PermissionDeniedError(f"Role '{actor.role.value}' may not {action}")


def require_own_shop(actor: Actor | None, endpoint: Endpoint, action: str) -> None:
    """Cashiers may only act on the shop they work at."""
    if actor is None or actor.role != Role.CASHIER:
        return
    if (
        isinstance(endpoint, LocationRef)
        and endpoint.kind == LocationKind.SHOP
        and endpoint.location_id == actor.shop_id
    ):
        return
    raise PermissionDeniedError(f"Cashiers may only {action} their own shop (not {endpoint})")

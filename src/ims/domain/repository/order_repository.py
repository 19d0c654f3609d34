"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.order import Order, OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_for_update(self, order_id: int) -> Order | None:
        """Like ``get_by_id`` but locks the order row until the unit of work ends."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order, assigning ``order.id`` if new."""

    @abstractmethod
    def list_all(self, status: OrderStatus | None = None) -> list[Order]:
        """Return orders, newest first, optionally filtered by status."""

    @abstractmethod
    def delete(self, order: Order) -> None:
        """Remove an order and its items."""

    @abstractmethod
    def sold_quantity(self, shop_id: str, product_id: str) -> int:
        """Units of a retail product sold by a shop in completed orders."""

"""Shops and warehouses."""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.model.value_objects import LocationKind, LocationRef


@dataclass
class Location:

    id: str
    name: str
    kind: LocationKind
    is_active: bool = True

    @property
    def ref(self) -> LocationRef:
        return LocationRef(self.kind, self.id)

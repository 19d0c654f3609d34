"""Application service: register a shop or warehouse."""

from __future__ import annotations

from ims.application.authorization import Actor, Role, require_role
from ims.domain.exceptions import ValidationError
from ims.domain.model.location import Location
from ims.domain.model.value_objects import LocationRef
from ims.domain.repository.unit_of_work import UnitOfWork


class AddLocationHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, location_id: str, name: str, kind: str, actor: Actor | None = None) -> str:
        require_role(actor, (Role.ADMIN,), "register locations")
        ref = LocationRef.parse(kind, location_id)
        if not name or not name.strip():
            raise ValidationError("Location name is required")

        with self._uow:
            if self._uow.locations.get_by_id(location_id) is not None:
                raise ValidationError(f"Location '{location_id}' already exists")
            self._uow.locations.save(Location(id=location_id, name=name.strip(), kind=ref.kind))
            self._uow.commit()

        return location_id

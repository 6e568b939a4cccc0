"""Exception types raised by the store, the service and the CLI."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models import ValidationResult


class FamilyTreeError(Exception):
    """Base class for all family tree errors."""


class NotFoundError(FamilyTreeError):
    def __init__(self, entity: str, entity_id: int | None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id {entity_id} not found")


class ValidationFailed(FamilyTreeError):
    """A write was blocked; `result` carries the errors and any warnings."""

    def __init__(self, result: "ValidationResult"):
        self.result = result
        super().__init__("; ".join(result.error_messages) or "Validation failed")

    @property
    def errors_by_field(self) -> dict[str, list[str]]:
        return self.result.errors_by_field()


class PersonValidationError(ValidationFailed):
    pass


class RelationshipValidationError(ValidationFailed):
    pass


class EventValidationError(ValidationFailed):
    pass

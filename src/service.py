"""Validated reads and writes over a GraphStore."""

from collections.abc import Mapping
from datetime import date
from typing import Any, Literal

from config import DEFAULT_THRESHOLDS, ChronologyThresholds
from cross_validation import validate_event, validate_person_write
from database import GraphStore
from errors import (
    EventValidationError,
    NotFoundError,
    PersonValidationError,
    RelationshipValidationError,
)
from graph import build_pedigree, find_relationship_path, get_ancestors, get_descendants
from log import get_logger
from models import (
    Event,
    EventRole,
    GenerationEntry,
    Person,
    PersonEvent,
    Relationship,
    ValidationIssue,
    ValidationResult,
)
from relationship_rules import inverse_of
from validation import validate_graph, validate_relationship_write

logger = get_logger(__name__)


class FamilyTreeService:
    """
    Every write runs its read-check-write sequence inside one store
    transaction. Validation errors raise a ValidationFailed subclass and leave
    the store untouched; warnings are returned to the caller.
    """

    def __init__(
        self,
        store: GraphStore,
        thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
        today: date | None = None,
    ):
        self.store = store
        self.thresholds = thresholds
        self.today = today

    def _require_person(self, person_id: int) -> Person:
        person = self.store.get_person(person_id)
        if person is None:
            raise NotFoundError("Person", person_id)
        return person

    def _require_persons(self, *person_ids: int) -> dict[int, Person]:
        persons = self.store.get_persons(person_ids)
        for person_id in person_ids:
            if person_id not in persons:
                raise NotFoundError("Person", person_id)
        return persons

    def _require_relationship(self, relationship_id: int) -> Relationship:
        relationship = self.store.get_relationship(relationship_id)
        if relationship is None:
            raise NotFoundError("Relationship", relationship_id)
        return relationship

    # Persons

    def create_person(self, person: Person) -> tuple[Person, list[ValidationIssue]]:
        result = validate_person_write(person, today=self.today, thresholds=self.thresholds)
        if not result.is_valid:
            logger.info("person.rejected", errors=result.error_messages)
        result.raise_for_errors(PersonValidationError)

        with self.store.transaction():
            person = self.store.insert_person(person)
        logger.info("person.created", person_id=person.id, warnings=len(result.warnings))
        return person, result.warnings

    def update_person(self, person: Person) -> tuple[Person, list[ValidationIssue]]:
        """Save changed person fields, re-checking linked events and relationships."""
        with self.store.transaction():
            self._require_person(person.id)
            events = self.store.events_for_person(person.id)
            relationships = self.store.relationships_for_persons([person.id])
            others = {r.person1_id for r in relationships} | {r.person2_id for r in relationships}
            persons = self.store.get_persons(others - {person.id})

            result = validate_person_write(
                person, events, relationships, persons, today=self.today, thresholds=self.thresholds
            )
            if not result.is_valid:
                logger.info("person.rejected", person_id=person.id, errors=result.error_messages)
            result.raise_for_errors(PersonValidationError)
            self.store.update_person(person)

        logger.info("person.updated", person_id=person.id, warnings=len(result.warnings))
        return person, result.warnings

    def delete_person(self, person_id: int) -> None:
        with self.store.transaction():
            self._require_person(person_id)
            self.store.delete_person(person_id)
        logger.info("person.deleted", person_id=person_id)

    # Relationships

    def create_relationship(self, relationship: Relationship) -> tuple[Relationship, list[ValidationIssue]]:
        """
        Validate and store a relationship together with its inverse row.

        Returns the stored primary row and any chronology warnings.

        Raises:
            NotFoundError: if either person does not exist.
            RelationshipValidationError: if any check fails; nothing is written.
        """
        with self.store.transaction():
            persons = self._require_persons(relationship.person1_id, relationship.person2_id)
            existing = self.store.relationships_in_component(
                [relationship.person1_id, relationship.person2_id]
            )
            result = validate_relationship_write(
                relationship, existing, persons, today=self.today, thresholds=self.thresholds
            )
            if not result.is_valid:
                logger.info(
                    "relationship.rejected",
                    person1_id=relationship.person1_id,
                    person2_id=relationship.person2_id,
                    relationship_type=relationship.relationship_type.value,
                    errors=result.error_messages,
                )
            result.raise_for_errors(RelationshipValidationError)

            relationship = self.store.insert_relationship(relationship)
            inverse = self.store.insert_relationship(inverse_of(relationship))

        logger.info(
            "relationship.created",
            relationship_id=relationship.id,
            inverse_id=inverse.id,
            relationship_type=relationship.relationship_type.value,
            warnings=len(result.warnings),
        )
        return relationship, result.warnings

    def update_relationship(self, relationship: Relationship) -> tuple[Relationship, list[ValidationIssue]]:
        """Re-validate and save a changed relationship, keeping its mirror row in step."""
        with self.store.transaction():
            current = self._require_relationship(relationship.id)
            mirror = self.store.find_inverse(current)
            persons = self._require_persons(relationship.person1_id, relationship.person2_id)
            existing = self.store.relationships_in_component(
                {current.person1_id, current.person2_id, relationship.person1_id, relationship.person2_id}
            )
            result = validate_relationship_write(
                relationship,
                existing,
                persons,
                ignore_ids=[mirror.id] if mirror else [],
                today=self.today,
                thresholds=self.thresholds,
            )
            if not result.is_valid:
                logger.info(
                    "relationship.rejected", relationship_id=relationship.id, errors=result.error_messages
                )
            result.raise_for_errors(RelationshipValidationError)

            self.store.update_relationship(relationship)
            new_mirror = inverse_of(relationship)
            if mirror is None:
                self.store.insert_relationship(new_mirror)
            else:
                new_mirror.id = mirror.id
                self.store.update_relationship(new_mirror)

        logger.info(
            "relationship.updated",
            relationship_id=relationship.id,
            inverse_id=new_mirror.id,
            warnings=len(result.warnings),
        )
        return relationship, result.warnings

    def delete_relationship(self, relationship_id: int) -> list[int]:
        """Delete a relationship and its inverse row. Returns the deleted row ids."""
        with self.store.transaction():
            current = self._require_relationship(relationship_id)
            deleted = [current.id]
            mirror = self.store.find_inverse(current)
            self.store.delete_relationship(current.id)
            if mirror is not None:
                self.store.delete_relationship(mirror.id)
                deleted.append(mirror.id)

        logger.info("relationship.deleted", relationship_ids=deleted)
        return deleted

    # Events

    def create_event(
        self, event: Event, links: Mapping[int, EventRole | None]
    ) -> tuple[Event, list[ValidationIssue]]:
        """
        Store an event and link it to persons.

        Args:
            event: The event to create.
            links: Role of each linked person, keyed by person id.
        """
        with self.store.transaction():
            persons = self._require_persons(*links) if links else {}
            linked = [(persons[person_id], role) for person_id, role in links.items()]
            result = validate_event(event, linked, today=self.today, thresholds=self.thresholds)
            if not result.is_valid:
                logger.info("event.rejected", event_type=event.event_type.value, errors=result.error_messages)
            result.raise_for_errors(EventValidationError)

            event = self.store.insert_event(event)
            for person_id, role in links.items():
                self.store.link_person_event(PersonEvent(person_id, event.id, role))

        logger.info("event.created", event_id=event.id, person_ids=sorted(links), warnings=len(result.warnings))
        return event, result.warnings

    def update_event(self, event: Event) -> tuple[Event, list[ValidationIssue]]:
        with self.store.transaction():
            if self.store.get_event(event.id) is None:
                raise NotFoundError("Event", event.id)
            linked = self.store.persons_for_event(event.id)
            result = validate_event(event, linked, today=self.today, thresholds=self.thresholds)
            if not result.is_valid:
                logger.info("event.rejected", event_id=event.id, errors=result.error_messages)
            result.raise_for_errors(EventValidationError)
            self.store.update_event(event)

        logger.info("event.updated", event_id=event.id, warnings=len(result.warnings))
        return event, result.warnings

    # Traversal

    def get_ancestors(self, person_id: int, max_generations: int | None = None) -> list[GenerationEntry]:
        self._require_person(person_id)
        relationships = self.store.relationships_in_component([person_id])
        return get_ancestors(person_id, relationships, max_generations)

    def get_descendants(self, person_id: int, max_generations: int | None = None) -> list[GenerationEntry]:
        self._require_person(person_id)
        relationships = self.store.relationships_in_component([person_id])
        return get_descendants(person_id, relationships, max_generations)

    def get_pedigree(
        self,
        person_id: int,
        generations: int = 3,
        direction: Literal["ancestors", "descendants"] = "ancestors",
    ) -> dict[str, Any]:
        self._require_person(person_id)
        relationships = self.store.relationships_in_component([person_id])
        return build_pedigree(person_id, relationships, generations, direction)

    def find_path(self, person1_id: int, person2_id: int, max_depth: int = 5) -> list[Relationship]:
        self._require_persons(person1_id, person2_id)
        relationships = self.store.relationships_in_component([person1_id])
        return find_relationship_path(person1_id, person2_id, relationships, max_depth)

    def audit(self, project_id: int | None = None) -> ValidationResult:
        """Run the whole-tree consistency audit over one project, or every row when `project_id` is None."""
        persons = self.store.persons_for_project(project_id)
        relationships = self.store.relationships_for_project(project_id)
        result = validate_graph(relationships, persons, today=self.today, thresholds=self.thresholds)
        logger.info(
            "tree.audited",
            project_id=project_id,
            persons=len(persons),
            relationships=len(relationships),
            errors=len(result.errors),
            warnings=len(result.warnings),
        )
        return result

"""
Chronology checks that span entities: a person against their events, an event
against its linked persons, and relationship date ranges against lifespans.

Person dates and birth/death events describe overlapping facts. These checks
report contradictions between them; keeping them in sync is left to the caller.
"""

from collections.abc import Iterable, Mapping
from datetime import date

from chronology import (
    validate_age,
    validate_grandparent_age_difference,
    validate_historical_consistency,
    validate_marriage,
    validate_parent_child_age_difference,
)
from config import DEFAULT_THRESHOLDS, ChronologyThresholds
from models import (
    Check,
    Event,
    EventRole,
    EventType,
    Gender,
    Person,
    Relationship,
    RelationshipType,
    ValidationResult,
)
from relationship_rules import canonical_key

DATED_EVENT_TYPES = (EventType.BIRTH, EventType.DEATH)


def _event_label(event: Event) -> str:
    return f"Event '{event.event_type.value}'"


def validate_event_fields(event: Event, today: date | None = None) -> ValidationResult:
    """Rules that need no person: birth/death events carry a date, no event is in the future."""
    today = today or date.today()
    result = ValidationResult()
    if event.event_type in DATED_EVENT_TYPES and not event.event_date:
        result.error(Check.REQUIRED_FIELD, f"Date is required for {event.event_type.value} events", "event_date")
    if event.event_date and event.event_date > today:
        result.error(Check.CHRONOLOGY, "Event date cannot be in the future", "event_date")
    return result


def validate_event_against_person(
    event: Event, person: Person, role: EventRole | None = EventRole.PRIMARY
) -> ValidationResult:
    """
    Bound one event by one linked person, according to their role.

    - primary (or no role): a birth event must fall on the person's birth
      date and a death event on the death date; any other event must fall
      within [birth_date, death_date].
    - witness: the event must fall within the witness's lifetime.
    - mentioned: not checked.
    """
    result = ValidationResult()
    event_date = event.event_date
    if not event_date or role == EventRole.MENTIONED:
        return result

    birth, death = person.birth_date, person.death_date
    name = person.display_name
    primary = role in (None, EventRole.PRIMARY)

    if primary and event.event_type == EventType.BIRTH and birth and event_date != birth:
        result.error(
            Check.CHRONOLOGY,
            f"Birth event date ({event_date}) does not match {name}'s birth date ({birth})",
            "event_date",
        )
    if primary and event.event_type == EventType.DEATH and death and event_date != death:
        result.error(
            Check.CHRONOLOGY,
            f"Death event date ({event_date}) does not match {name}'s death date ({death})",
            "event_date",
        )
    if birth and event_date < birth and not (primary and event.event_type == EventType.BIRTH):
        result.error(
            Check.CHRONOLOGY,
            f"{_event_label(event)} date ({event_date}) is before {name}'s birth date ({birth})",
            "event_date",
        )
    if death and event_date > death and not (primary and event.event_type == EventType.DEATH):
        result.error(
            Check.CHRONOLOGY,
            f"{_event_label(event)} date ({event_date}) is after {name}'s death date ({death})",
            "event_date",
        )
    return result


def validate_person_events(
    person: Person, events: Iterable[tuple[Event, EventRole | None]]
) -> ValidationResult:
    """Check every event tied to `person`, given as (event, role) pairs, against the person's dates."""
    result = ValidationResult()
    for event, role in events:
        if event.event_type in DATED_EVENT_TYPES and not event.event_date:
            result.error(
                Check.REQUIRED_FIELD, f"Date is required for {event.event_type.value} events", "event_date"
            )
            continue
        result.extend(validate_event_against_person(event, person, role))
    return result


def validate_event(
    event: Event,
    links: Iterable[tuple[Person, EventRole | None]] = (),
    today: date | None = None,
    thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
) -> ValidationResult:
    """Validate an event being saved against every linked person, given as (person, role) pairs."""
    result = validate_event_fields(event, today)
    for person, role in links:
        result.extend(validate_event_against_person(event, person, role))
    if result.is_valid:
        result.extend(
            validate_historical_consistency(
                event.event_date, event.event_type, event.event_location, today, thresholds
            )
        )
    return result


def validate_relationship_dates(
    relationship: Relationship, person1: Person, person2: Person
) -> ValidationResult:
    """A relationship's start/end dates must fall within both persons' lifetimes."""
    result = ValidationResult()
    for field_name in ("start_date", "end_date"):
        value = getattr(relationship, field_name)
        if not value:
            continue
        label = "Start date" if field_name == "start_date" else "End date"
        for person in (person1, person2):
            if person.birth_date and value < person.birth_date:
                result.error(
                    Check.CHRONOLOGY, f"{label} is before {person.display_name}'s birth date", field_name
                )
            if person.death_date and value > person.death_date:
                result.error(
                    Check.CHRONOLOGY, f"{label} is after {person.display_name}'s death date", field_name
                )
    return result


def validate_person_fields(person: Person) -> ValidationResult:
    result = ValidationResult()
    if not (person.first_name or "").strip():
        result.error(Check.REQUIRED_FIELD, "First name cannot be empty", "first_name")
    if not (person.last_name or "").strip():
        result.error(Check.REQUIRED_FIELD, "Last name cannot be empty", "last_name")
    if person.gender is not None and not isinstance(person.gender, Gender):
        result.error(Check.FIELD_VALUE, "Gender must be one of: male, female, other, unknown", "gender")
    return result


def validate_person_write(
    person: Person,
    events: Iterable[tuple[Event, EventRole | None]] = (),
    relationships: Iterable[Relationship] = (),
    persons: Mapping[int, Person] | None = None,
    today: date | None = None,
    thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
) -> ValidationResult:
    """
    Validate a person being created or updated.

    Runs the field and age checks, then (for an existing person) re-checks
    linked events, given as (event, role) pairs, and the parent/child,
    grandparent and marriage chronology of every relationship touching the
    person, since changed vital dates can break them. `persons` supplies the
    other endpoints of those relationships.
    """
    result = validate_person_fields(person)
    result.extend(validate_age(person, today, thresholds))
    if not result.is_valid:
        return result

    result.extend(validate_person_events(person, events))

    persons = persons or {}
    seen: set = set()
    for rel in relationships:
        # Both stored directions of one relationship are checked once
        key = canonical_key(rel)
        if key in seen:
            continue
        seen.add(key)
        other_id = rel.person2_id if rel.person1_id == person.id else rel.person1_id
        other = persons.get(other_id)
        if other is None:
            continue
        first, second = (person, other) if rel.person1_id == person.id else (other, person)
        if rel.relationship_type == RelationshipType.PARENT:
            result.extend(validate_parent_child_age_difference(first, second, thresholds))
        elif rel.relationship_type == RelationshipType.CHILD:
            result.extend(validate_parent_child_age_difference(second, first, thresholds))
        elif rel.relationship_type == RelationshipType.GRANDPARENT:
            result.extend(validate_grandparent_age_difference(first, second, thresholds))
        elif rel.relationship_type == RelationshipType.GRANDCHILD:
            result.extend(validate_grandparent_age_difference(second, first, thresholds))
        elif rel.relationship_type == RelationshipType.SPOUSE:
            result.extend(validate_marriage(first, second, rel, today, thresholds))
        else:
            result.extend(validate_relationship_dates(rel, first, second))
    return result

"""Data classes and enumerations for family tree entities."""

from dataclasses import asdict, dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any

from errors import ValidationFailed
from parsing import to_date


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


class RelationshipType(str, Enum):
    PARENT = "parent"
    CHILD = "child"
    SPOUSE = "spouse"
    SIBLING = "sibling"
    GRANDPARENT = "grandparent"
    GRANDCHILD = "grandchild"
    AUNT_UNCLE = "aunt/uncle"
    NIECE_NEPHEW = "niece/nephew"
    COUSIN = "cousin"


class RelationshipQualifier(str, Enum):
    BIOLOGICAL = "biological"
    ADOPTIVE = "adoptive"
    STEP = "step"
    FOSTER = "foster"
    IN_LAW = "in-law"


class EventType(str, Enum):
    BIRTH = "birth"
    DEATH = "death"
    MARRIAGE = "marriage"
    DIVORCE = "divorce"
    IMMIGRATION = "immigration"
    EMIGRATION = "emigration"
    NATURALIZATION = "naturalization"
    GRADUATION = "graduation"
    MILITARY_SERVICE = "military_service"
    RETIREMENT = "retirement"
    RELIGIOUS = "religious"
    MEDICAL = "medical"
    RESIDENCE = "residence"
    CENSUS = "census"
    OTHER = "other"


class EventRole(str, Enum):
    PRIMARY = "primary"
    WITNESS = "witness"
    MENTIONED = "mentioned"


@dataclass
class Person:
    first_name: str
    last_name: str
    id: int | None = None
    project_id: int | None = None
    middle_name: str | None = None
    maiden_name: str | None = None
    gender: Gender | None = None
    birth_date: date | None = None
    birth_location: str | None = None
    death_date: date | None = None
    death_location: str | None = None
    notes: str | None = None

    @property
    def display_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(p for p in parts if p) or f"Person {self.id}"

    @property
    def is_living(self) -> bool:
        return self.death_date is None


@dataclass
class Relationship:
    # relationship_type PARENT on (person1_id, person2_id) means person1 is the parent of person2
    person1_id: int
    person2_id: int
    relationship_type: RelationshipType
    relationship_qualifier: RelationshipQualifier | None = None
    start_date: date | None = None
    end_date: date | None = None
    notes: str | None = None
    id: int | None = None

    def with_changes(self, **changes: Any) -> "Relationship":
        return replace(self, **changes)


@dataclass
class Event:
    event_type: EventType
    event_date: date | None = None
    event_location: str | None = None
    description: str | None = None
    id: int | None = None


@dataclass
class PersonEvent:
    person_id: int
    event_id: int
    role: EventRole | None = EventRole.PRIMARY
    notes: str | None = None


@dataclass(frozen=True)
class GenerationEntry:
    """A person reached by an ancestry traversal and its distance from the start."""

    person_id: int
    generation: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Check(str, Enum):
    """Identifies which validation step produced an issue."""

    FIELD_VALUE = "field_value"
    SELF_RELATION = "self_relation"
    TYPE_QUALIFIER = "type_qualifier"
    REQUIRED_FIELD = "required_field"
    DATE_RANGE = "date_range"
    DUPLICATE = "duplicate"
    CONTRADICTION = "contradiction"
    CYCLE = "cycle"
    CHRONOLOGY = "chronology"
    INVERSE_MISSING = "inverse_missing"
    HISTORICAL = "historical"


@dataclass(frozen=True)
class ValidationIssue:
    check: Check
    message: str
    field: str | None = None
    severity: Severity = Severity.ERROR

    def to_dict(self) -> dict[str, str | None]:
        return {
            "check": self.check.value,
            "message": self.message,
            "field": self.field,
            "severity": self.severity.value,
        }


@dataclass
class ValidationResult:
    """
    Outcome of any validation in the engine.

    Errors block a write; warnings are plausibility flags the caller surfaces
    without blocking.
    """

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(self, check: Check, message: str, field: str | None = None) -> None:
        self.errors.append(ValidationIssue(check, message, field, Severity.ERROR))

    def warn(self, check: Check, message: str, field: str | None = None) -> None:
        self.warnings.append(ValidationIssue(check, message, field, Severity.WARNING))

    def extend(self, other: "ValidationResult") -> "ValidationResult":
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.errors]

    @property
    def warning_messages(self) -> list[str]:
        return [issue.message for issue in self.warnings]

    def errors_by_field(self) -> dict[str, list[str]]:
        """Field-keyed error map; issues without a field are keyed as "_general"."""
        by_field: dict[str, list[str]] = {}
        for issue in self.errors:
            by_field.setdefault(issue.field or "_general", []).append(issue.message)
        return by_field

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }

    def raise_for_errors(self, exc_type: type[Exception] | None = None) -> "ValidationResult":
        """Raise `exc_type` (a ValidationFailed subclass) when any error is present."""
        if self.errors:
            raise (exc_type or ValidationFailed)(self)
        return self


def _coerce_enum(enum_type, value, field_name: str, result: ValidationResult, required: bool = False):
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            result.error(Check.REQUIRED_FIELD, f"{field_name} is required", field_name)
        return None
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        result.error(Check.FIELD_VALUE, f"Invalid {field_name} {value!r}; expected one of: {allowed}", field_name)
        return None


def _coerce_date(value, field_name: str, result: ValidationResult) -> date | None:
    try:
        return to_date(value)
    except (TypeError, ValueError):
        result.error(Check.FIELD_VALUE, f"{field_name} must be a valid date", field_name)
        return None


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def person_from_payload(payload: dict[str, Any]) -> Person:
    """Build a Person from a request payload, raising ValidationFailed with field-keyed errors."""
    result = ValidationResult()
    first_name = _clean(payload.get("first_name"))
    last_name = _clean(payload.get("last_name"))
    if not first_name:
        result.error(Check.REQUIRED_FIELD, "First name cannot be empty", "first_name")
    if not last_name:
        result.error(Check.REQUIRED_FIELD, "Last name cannot be empty", "last_name")

    person = Person(
        first_name=first_name or "",
        last_name=last_name or "",
        id=payload.get("id"),
        project_id=payload.get("project_id"),
        middle_name=_clean(payload.get("middle_name")),
        maiden_name=_clean(payload.get("maiden_name")),
        gender=_coerce_enum(Gender, payload.get("gender"), "gender", result),
        birth_date=_coerce_date(payload.get("birth_date"), "birth_date", result),
        birth_location=_clean(payload.get("birth_location")),
        death_date=_coerce_date(payload.get("death_date"), "death_date", result),
        death_location=_clean(payload.get("death_location")),
        notes=payload.get("notes"),
    )
    result.raise_for_errors()
    return person


def relationship_from_payload(payload: dict[str, Any]) -> Relationship:
    """Build a Relationship from a request payload, raising ValidationFailed with field-keyed errors."""
    result = ValidationResult()
    person_ids = {}
    for key in ("person1_id", "person2_id"):
        value = payload.get(key)
        if value is None or value == "":
            result.error(Check.REQUIRED_FIELD, f"{key} is required", key)
            continue
        try:
            person_ids[key] = int(value)
        except (TypeError, ValueError):
            result.error(Check.FIELD_VALUE, f"{key} must be an integer id", key)

    relationship_type = _coerce_enum(
        RelationshipType, payload.get("relationship_type"), "relationship_type", result, required=True
    )
    qualifier = _coerce_enum(
        RelationshipQualifier, payload.get("relationship_qualifier"), "relationship_qualifier", result
    )
    start_date = _coerce_date(payload.get("start_date"), "start_date", result)
    end_date = _coerce_date(payload.get("end_date"), "end_date", result)
    result.raise_for_errors()

    return Relationship(
        person1_id=person_ids["person1_id"],
        person2_id=person_ids["person2_id"],
        relationship_type=relationship_type,
        relationship_qualifier=qualifier,
        start_date=start_date,
        end_date=end_date,
        notes=payload.get("notes"),
        id=payload.get("id"),
    )


def event_from_payload(payload: dict[str, Any]) -> Event:
    """Build an Event from a request payload, raising ValidationFailed with field-keyed errors."""
    result = ValidationResult()
    event_type = _coerce_enum(EventType, payload.get("event_type"), "event_type", result, required=True)
    event_date = _coerce_date(payload.get("event_date"), "event_date", result)
    result.raise_for_errors()
    return Event(
        event_type=event_type,
        event_date=event_date,
        event_location=_clean(payload.get("event_location")),
        description=payload.get("description"),
        id=payload.get("id"),
    )


def coerce_role(value) -> EventRole | None:
    result = ValidationResult()
    role = _coerce_enum(EventRole, value, "role", result)
    result.raise_for_errors()
    return role

from datetime import date

import pytest

from errors import ValidationFailed
from models import (
    Check,
    Gender,
    RelationshipType,
    ValidationResult,
    event_from_payload,
    person_from_payload,
    relationship_from_payload,
)


class TestValidationResult:
    def test_errors_block_warnings_do_not(self):
        result = ValidationResult()
        result.warn(Check.CHRONOLOGY, "odd", "birth_date")
        assert result.is_valid
        result.error(Check.CYCLE, "loop")
        assert not result.is_valid
        assert result.errors_by_field() == {"_general": ["loop"]}

    def test_to_dict(self):
        result = ValidationResult()
        result.error(Check.REQUIRED_FIELD, "First name cannot be empty", "first_name")
        assert result.to_dict() == {
            "is_valid": False,
            "errors": [
                {
                    "check": "required_field",
                    "message": "First name cannot be empty",
                    "field": "first_name",
                    "severity": "error",
                }
            ],
            "warnings": [],
        }

    def test_raise_for_errors(self):
        result = ValidationResult()
        assert result.raise_for_errors() is result
        result.error(Check.DUPLICATE, "exists", "relationship_type")
        with pytest.raises(ValidationFailed) as excinfo:
            result.raise_for_errors()
        assert excinfo.value.errors_by_field == {"relationship_type": ["exists"]}


class TestPayloads:
    def test_person_payload(self):
        person = person_from_payload(
            {"first_name": " Ann ", "last_name": "Lee", "gender": "Female", "birth_date": "25 NOV 1954"}
        )
        assert person.first_name == "Ann"
        assert person.gender == Gender.FEMALE
        assert person.birth_date == date(1954, 11, 25)

    def test_person_payload_errors_by_field(self):
        with pytest.raises(ValidationFailed) as excinfo:
            person_from_payload({"first_name": "", "last_name": "Lee", "gender": "robot", "birth_date": "soon"})
        assert set(excinfo.value.errors_by_field) == {"first_name", "gender", "birth_date"}

    def test_relationship_payload(self):
        relationship = relationship_from_payload(
            {"person1_id": "1", "person2_id": 2, "relationship_type": "parent"}
        )
        assert relationship.person1_id == 1
        assert relationship.relationship_type == RelationshipType.PARENT

    def test_relationship_payload_unknown_type(self):
        with pytest.raises(ValidationFailed) as excinfo:
            relationship_from_payload({"person1_id": 1, "person2_id": 2, "relationship_type": "uncle"})
        assert list(excinfo.value.errors_by_field) == ["relationship_type"]

    def test_event_payload_requires_type(self):
        with pytest.raises(ValidationFailed):
            event_from_payload({"event_date": "1900"})

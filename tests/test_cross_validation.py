from datetime import date

from cross_validation import (
    validate_event,
    validate_person_events,
    validate_person_write,
    validate_relationship_dates,
)
from factories import TODAY, person, rel
from models import Check, Event, EventRole, EventType

PRIMARY = EventRole.PRIMARY


class TestEvents:
    def test_birth_event_requires_date(self):
        result = validate_event(Event(EventType.BIRTH), today=TODAY)
        assert result.errors_by_field() == {"event_date": ["Date is required for birth events"]}

    def test_event_before_birth(self):
        ann = person(1, "Ann", "1950-01-01")
        result = validate_event(Event(EventType.GRADUATION, date(1940, 6, 1)), [(ann, PRIMARY)], today=TODAY)
        assert "before Ann Test's birth date" in result.error_messages[0]

    def test_event_after_death(self):
        ann = person(1, "Ann", "1950-01-01", "2000-01-01")
        result = validate_event(Event(EventType.RESIDENCE, date(2001, 1, 1)), [(ann, PRIMARY)], today=TODAY)
        assert not result.is_valid

    def test_birth_event_must_match_birth_date(self):
        ann = person(1, "Ann", "1950-01-01")
        result = validate_event(Event(EventType.BIRTH, date(1950, 1, 2)), [(ann, PRIMARY)], today=TODAY)
        assert "does not match" in result.error_messages[0]

    def test_death_event_on_death_date(self):
        ann = person(1, "Ann", "1950-01-01", "2000-01-01")
        result = validate_event(Event(EventType.DEATH, date(2000, 1, 1)), [(ann, PRIMARY)], today=TODAY)
        assert result.is_valid

    def test_every_linked_person_is_checked(self):
        ann = person(1, "Ann", "1950-01-01")
        bob = person(2, "Bob", "1970-01-01")
        result = validate_event(
            Event(EventType.MARRIAGE, date(1965, 1, 1)), [(ann, PRIMARY), (bob, PRIMARY)], today=TODAY
        )
        assert len(result.errors) == 1
        assert "Bob" in result.error_messages[0]

    def test_witness_at_birth_is_bounded_by_lifespan_only(self):
        mother = person(1, "Mia", "1950-01-01")
        child = person(2, "Cal", "1980-05-05")
        birth = Event(EventType.BIRTH, date(1980, 5, 5))
        result = validate_event(birth, [(child, PRIMARY), (mother, EventRole.WITNESS)], today=TODAY)
        assert result.is_valid

    def test_witness_before_own_birth(self):
        witness = person(1, "Mia", "1990-01-01")
        result = validate_event(
            Event(EventType.BIRTH, date(1980, 5, 5)), [(witness, EventRole.WITNESS)], today=TODAY
        )
        assert "before Mia Test's birth date" in result.error_messages[0]

    def test_mentioned_person_is_not_checked(self):
        ann = person(1, "Ann", "1950-01-01", "1960-01-01")
        result = validate_event(
            Event(EventType.OTHER, date(1961, 1, 1)), [(ann, EventRole.MENTIONED)], today=TODAY
        )
        assert result.is_valid

    def test_missing_role_treated_as_primary(self):
        ann = person(1, "Ann", "1950-01-01")
        result = validate_event(Event(EventType.BIRTH, date(1950, 1, 2)), [(ann, None)], today=TODAY)
        assert "does not match" in result.error_messages[0]

    def test_future_event(self):
        result = validate_event(Event(EventType.OTHER, date(2030, 1, 1)), today=TODAY)
        assert result.errors[0].check == Check.CHRONOLOGY

    def test_historical_warnings_only_when_valid(self):
        result = validate_event(
            Event(EventType.CENSUS, date(1905, 1, 1), "Ohio, United States"), today=TODAY
        )
        assert result.is_valid
        assert result.warnings[0].check == Check.HISTORICAL

    def test_person_events(self):
        ann = person(1, "Ann", "1950-01-01", "2000-01-01")
        events = [(Event(EventType.DEATH), PRIMARY), (Event(EventType.RESIDENCE, date(1960, 1, 1)), PRIMARY)]
        result = validate_person_events(ann, events)
        assert [issue.check for issue in result.errors] == [Check.REQUIRED_FIELD]


class TestRelationshipDates:
    def test_start_before_birth(self):
        result = validate_relationship_dates(
            rel(None, 1, "sibling", 2, start_date=date(1940, 1, 1)),
            person(1, "Ann", "1950-01-01"),
            person(2, "Bob", "1930-01-01"),
        )
        assert result.error_messages == ["Start date is before Ann Test's birth date"]


class TestPersonWrite:
    def test_required_names(self):
        result = validate_person_write(person(None, "  "), today=TODAY)
        assert "first_name" in result.errors_by_field()

    def test_changed_birth_breaks_parent_gap(self):
        # Bob's birth moved before his father's
        bob = person(2, "Bob", "1945-01-01")
        persons = {1: person(1, "Ann", "1950-01-01")}
        relationships = [rel(1, 1, "parent", 2), rel(2, 2, "child", 1)]
        result = validate_person_write(bob, [], relationships, persons, today=TODAY)
        assert result.error_messages == ["Parent must be born before child"]

    def test_changed_death_breaks_marriage(self):
        ann = person(1, "Ann", "1950-01-01", "1970-01-01")
        persons = {2: person(2, "Bob", "1948-01-01")}
        relationships = [rel(1, 1, "spouse", 2, start_date=date(1975, 1, 1))]
        result = validate_person_write(ann, [], relationships, persons, today=TODAY)
        assert not result.is_valid
        assert result.errors[0].field == "start_date"

    def test_events_rechecked(self):
        ann = person(1, "Ann", "1950-01-01", "1990-01-01")
        events = [(Event(EventType.RETIREMENT, date(2010, 1, 1)), PRIMARY)]
        result = validate_person_write(ann, events, today=TODAY)
        assert "after Ann Test's death date" in result.error_messages[0]

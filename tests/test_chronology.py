from datetime import date

import pytest

from chronology import (
    validate_age,
    validate_grandparent_age_difference,
    validate_historical_consistency,
    validate_marriage,
    validate_parent_child_age_difference,
    validate_sibling_age_difference,
    validate_sibling_group,
)
from config import ChronologyThresholds
from factories import TODAY, person, rel
from models import Check, EventType


class TestValidateAge:
    def test_plausible_person_is_clean(self):
        result = validate_age(person(1, "Ann", "1900-01-01", "1980-05-05"), TODAY)
        assert result.is_valid
        assert not result.warnings

    def test_future_birth(self):
        result = validate_age(person(1, "Ann", "2030-01-01"), TODAY)
        assert not result.is_valid
        assert result.errors[0].field == "birth_date"

    def test_death_before_birth(self):
        result = validate_age(person(1, "Ann", "1900-01-01", "1899-01-01"), TODAY)
        assert [issue.check for issue in result.errors] == [Check.DATE_RANGE]

    def test_lifespan_over_maximum(self):
        result = validate_age(person(1, "Ann", "1800-01-01", "1925-01-01"), TODAY)
        assert not result.is_valid
        assert "exceeds 120 years" in result.error_messages[0]

    def test_infant_death_warns(self):
        result = validate_age(person(1, "Ann", "1900-01-01", "1900-03-01"), TODAY)
        assert result.is_valid
        assert "under 1 year" in result.warning_messages[0]

    def test_very_old_living_person_warns(self):
        result = validate_age(person(1, "Ann", "1910-01-01"), TODAY)
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_impossibly_old_living_person_errors(self):
        result = validate_age(person(1, "Ann", "1890-01-01"), TODAY)
        assert not result.is_valid


class TestParentChildAgeDifference:
    def test_normal_gap(self):
        result = validate_parent_child_age_difference(
            person(1, "Ann", "1950-01-01"), person(2, "Bob", "1980-01-01")
        )
        assert result.is_valid
        assert not result.warnings

    def test_parent_born_after_child(self):
        result = validate_parent_child_age_difference(
            person(1, "Ann", "1980-01-01"), person(2, "Bob", "1950-01-01")
        )
        assert result.error_messages == ["Parent must be born before child"]

    def test_gap_below_minimum_is_error(self):
        result = validate_parent_child_age_difference(
            person(1, "Ann", "1990-01-01"), person(2, "Bob", "1998-01-01")
        )
        assert not result.is_valid

    def test_gap_in_warning_band(self):
        result = validate_parent_child_age_difference(
            person(1, "Ann", "1990-01-01"), person(2, "Cal", "2000-06-01")
        )
        assert result.is_valid
        assert "unusually small" in result.warning_messages[0]

    def test_large_gap_warns(self):
        result = validate_parent_child_age_difference(
            person(1, "Ann", "1900-01-01"), person(2, "Bob", "1975-01-01")
        )
        assert result.is_valid
        assert "unusually large" in result.warning_messages[0]

    def test_gap_in_verification_band(self):
        result = validate_parent_child_age_difference(
            person(1, "Ann", "1900-01-01"), person(2, "Bob", "1965-01-01")
        )
        assert result.is_valid
        assert result.warning_messages == ["Parent-child age difference (65 years) is large. Please verify dates."]

    def test_missing_birth_skips(self):
        result = validate_parent_child_age_difference(person(1, "Ann"), person(2, "Bob", "1975-01-01"))
        assert result.is_valid and not result.warnings

    def test_thresholds_are_configurable(self):
        strict = ChronologyThresholds(min_parent_age_years=12, comfortable_parent_age_years=16)
        result = validate_parent_child_age_difference(
            person(1, "Ann", "1990-01-01"), person(2, "Cal", "2000-06-01"), strict
        )
        assert not result.is_valid


class TestGrandparentAgeDifference:
    def test_two_generations_apart(self):
        result = validate_grandparent_age_difference(
            person(1, "Ann", "1920-01-01"), person(3, "Cal", "1980-01-01")
        )
        assert result.is_valid and not result.warnings

    def test_grandparent_born_after_grandchild(self):
        result = validate_grandparent_age_difference(
            person(1, "Ann", "1980-01-01"), person(3, "Cal", "1970-01-01")
        )
        assert result.error_messages == ["Grandparent must be born before grandchild"]

    def test_gap_under_two_minimum_parent_ages(self):
        result = validate_grandparent_age_difference(
            person(1, "Ann", "1970-01-01"), person(3, "Cal", "1985-01-01")
        )
        assert not result.is_valid
        assert "at least 20 years" in result.error_messages[0]


class TestSiblings:
    def test_same_day_might_be_twins(self):
        result = validate_sibling_age_difference(
            person(1, "Ann", "1950-01-01"), person(2, "Bob", "1950-01-01")
        )
        assert result.is_valid
        assert "might be twins" in result.warning_messages[0]

    def test_close_births(self):
        result = validate_sibling_age_difference(
            person(1, "Ann", "1950-01-01"), person(2, "Bob", "1950-06-01")
        )
        assert "less than 9 months" in result.warning_messages[0]

    def test_large_gap(self):
        result = validate_sibling_age_difference(
            person(1, "Ann", "1900-01-01"), person(2, "Bob", "1940-01-01")
        )
        assert "unusually large" in result.warning_messages[0]

    def test_group_checks_consecutive_pairs(self):
        siblings = [
            person(1, "Ann", "1950-01-01"),
            person(2, "Bob", "1950-01-01"),
            person(3, "Cal", "1953-01-01"),
            person(4, "Dee"),
        ]
        result = validate_sibling_group(siblings)
        assert result.is_valid
        assert len(result.warnings) == 1
        assert "might be twins" in result.warning_messages[0]


class TestMarriage:
    def test_valid_marriage(self):
        result = validate_marriage(
            person(1, "Ann", "1950-01-01"),
            person(2, "Bob", "1948-01-01"),
            rel(None, 1, "spouse", 2, start_date=date(1975, 6, 1)),
            TODAY,
        )
        assert result.is_valid and not result.warnings

    def test_marriage_after_death(self):
        result = validate_marriage(
            person(1, "Ann", "1950-01-01", "1970-01-01"),
            person(2, "Bob", "1948-01-01"),
            rel(None, 1, "spouse", 2, start_date=date(1975, 6, 1)),
            TODAY,
        )
        assert "after Ann's death date" in result.error_messages[0]
        assert result.errors[0].field == "start_date"

    def test_young_spouse_warns(self):
        result = validate_marriage(
            person(1, "Ann", "1950-01-01"),
            person(2, "Bob", "1940-01-01"),
            rel(None, 1, "spouse", 2, start_date=date(1962, 1, 1)),
            TODAY,
        )
        assert result.is_valid
        assert "unusually young" in result.warning_messages[0]

    def test_end_before_start(self):
        result = validate_marriage(
            person(1, "Ann", "1950-01-01"),
            person(2, "Bob", "1948-01-01"),
            rel(None, 1, "spouse", 2, start_date=date(1975, 6, 1), end_date=date(1970, 1, 1)),
            TODAY,
        )
        assert any(issue.check == Check.DATE_RANGE for issue in result.errors)


class TestHistoricalConsistency:
    def test_future_event_is_error(self):
        result = validate_historical_consistency(date(2030, 1, 1), today=TODAY)
        assert not result.is_valid

    def test_early_date_warns(self):
        result = validate_historical_consistency(date(1350, 1, 1), today=TODAY)
        assert result.is_valid
        assert result.warnings[0].check == Check.HISTORICAL

    @pytest.mark.parametrize("year,warns", [(1900, False), (1905, True)])
    def test_us_census_years(self, year, warns):
        result = validate_historical_consistency(
            date(year, 4, 1), EventType.CENSUS, "Ohio, United States", TODAY
        )
        assert bool(result.warnings) is warns

    def test_military_service_during_war(self):
        result = validate_historical_consistency(date(1943, 1, 1), EventType.MILITARY_SERVICE, today=TODAY)
        assert "World War II" in result.warning_messages[0]

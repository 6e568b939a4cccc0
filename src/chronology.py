"""
Date-plausibility rules for persons, parent/child pairs, siblings and marriages.

Every function is pure: it takes the data to check, an optional `today` and an
optional set of thresholds, and returns a ValidationResult. Errors are
violations that must block a write; warnings are unusual but possible data
(adoption, remarriage, twins) that the caller should surface.
"""

from datetime import date
from typing import Iterable

from config import DEFAULT_THRESHOLDS, ChronologyThresholds
from models import Check, EventType, Person, Relationship, ValidationResult
from parsing import DAYS_PER_YEAR, days_between, years_between


US_CENSUS_YEARS = frozenset(range(1790, 2021, 10))

US_WARS = [
    ("American Revolution", 1775, 1783),
    ("War of 1812", 1812, 1815),
    ("Mexican-American War", 1846, 1848),
    ("American Civil War", 1861, 1865),
    ("Spanish-American War", 1898, 1898),
    ("World War I", 1917, 1918),
    ("World War II", 1941, 1945),
    ("Korean War", 1950, 1953),
    ("Vietnam War", 1955, 1975),
    ("Gulf War", 1990, 1991),
    ("War in Afghanistan", 2001, 2021),
    ("Iraq War", 2003, 2011),
]

US_IMMIGRATION_WAVES = [
    ("Colonial Period", 1607, 1775),
    ("Old Immigration", 1820, 1880),
    ("New Immigration", 1880, 1920),
    ("Post-WWII", 1945, 1965),
    ("Modern Immigration", 1965, None),
]


def _name(person: Person) -> str:
    return person.first_name or person.display_name


def validate_age(
    person: Person,
    today: date | None = None,
    thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
) -> ValidationResult:
    """
    Check a person's own vital dates.

    - birth or death in the future: error
    - death on or before birth: error
    - age at death above the maximum lifespan: error
    - age at death under one year: warning
    - living person older than the living-age limit: warning
    """
    today = today or date.today()
    result = ValidationResult()
    birth, death = person.birth_date, person.death_date

    if birth and birth > today:
        result.error(Check.CHRONOLOGY, "Birth date cannot be in the future", "birth_date")
    if death and death > today:
        result.error(Check.CHRONOLOGY, "Death date cannot be in the future", "death_date")

    if birth and death:
        if death <= birth:
            result.error(Check.DATE_RANGE, "Death date must be after birth date", "death_date")
            return result

        age = years_between(birth, death)
        if age > thresholds.max_lifespan_years:
            result.error(
                Check.CHRONOLOGY,
                f"Age at death ({round(age)} years) exceeds {thresholds.max_lifespan_years:g} years. "
                "Please verify dates.",
                "death_date",
            )
        elif age < 1:
            result.warn(
                Check.CHRONOLOGY,
                f"Age at death ({round(age * 12)} months) is under 1 year. "
                "Consider adding more precise dates if available.",
                "death_date",
            )
    elif birth and not death and birth <= today:
        age = years_between(birth, today)
        if age > thresholds.max_lifespan_years:
            result.error(
                Check.CHRONOLOGY,
                f"Current age ({round(age)} years) exceeds {thresholds.max_lifespan_years:g} years. "
                "Add a death date or correct the birth date.",
                "birth_date",
            )
        elif age > thresholds.max_living_age_years:
            result.warn(
                Check.CHRONOLOGY,
                f"Current age ({round(age)} years) exceeds {thresholds.max_living_age_years:g} years. "
                "Please verify birth date or add death date if applicable.",
                "birth_date",
            )

    return result


def validate_parent_child_age_difference(
    parent: Person,
    child: Person,
    thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
) -> ValidationResult:
    """
    Check the birth gap between a parent and a child.

    Below `min_parent_age_years` the pair is rejected; up to
    `comfortable_parent_age_years` it is flagged. Above
    `elderly_parent_age_years` it is flagged for verification, and above
    `max_parent_age_years` as unusually large. Missing birth dates skip the check.
    """
    result = ValidationResult()
    if not parent.birth_date or not child.birth_date:
        return result

    if parent.birth_date >= child.birth_date:
        result.error(Check.CHRONOLOGY, "Parent must be born before child", "person2_id")
        return result

    gap = years_between(parent.birth_date, child.birth_date)
    if gap < thresholds.min_parent_age_years:
        result.error(
            Check.CHRONOLOGY,
            f"Parent-child age difference ({gap:.1f} years) is implausibly small. "
            f"{_name(parent)} would have been under {thresholds.min_parent_age_years:g} years old.",
            "person2_id",
        )
    elif gap < thresholds.comfortable_parent_age_years:
        result.warn(
            Check.CHRONOLOGY,
            f"Parent-child age difference ({gap:.1f} years) is unusually small. Please verify dates.",
            "person2_id",
        )
    elif gap > thresholds.max_parent_age_years:
        result.warn(
            Check.CHRONOLOGY,
            f"Parent-child age difference ({round(gap)} years) is unusually large. "
            f"{_name(parent)} would have been over {thresholds.max_parent_age_years:g} years old.",
            "person2_id",
        )
    elif gap > thresholds.elderly_parent_age_years:
        result.warn(
            Check.CHRONOLOGY,
            f"Parent-child age difference ({round(gap)} years) is large. Please verify dates.",
            "person2_id",
        )
    return result


def validate_grandparent_age_difference(
    grandparent: Person,
    grandchild: Person,
    thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
) -> ValidationResult:
    """A grandparent must be born before the grandchild, by at least two minimum parent ages."""
    result = ValidationResult()
    if not grandparent.birth_date or not grandchild.birth_date:
        return result

    if grandparent.birth_date >= grandchild.birth_date:
        result.error(Check.CHRONOLOGY, "Grandparent must be born before grandchild", "person2_id")
        return result

    gap = years_between(grandparent.birth_date, grandchild.birth_date)
    if gap < 2 * thresholds.min_parent_age_years:
        result.error(
            Check.CHRONOLOGY,
            f"Grandparent-grandchild age difference ({gap:.1f} years) is implausibly small. "
            f"Two generations need at least {2 * thresholds.min_parent_age_years:g} years.",
            "person2_id",
        )
    return result


def validate_sibling_age_difference(
    sibling1: Person,
    sibling2: Person,
    thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
) -> ValidationResult:
    """Flag same-day births, births less than nine months apart, and very large gaps. Never errors."""
    result = ValidationResult()
    if not sibling1.birth_date or not sibling2.birth_date:
        return result

    gap_days = abs(days_between(sibling1.birth_date, sibling2.birth_date))
    names = f"{_name(sibling1)} and {_name(sibling2)}"
    if gap_days == 0:
        result.warn(Check.CHRONOLOGY, f"Siblings {names} were born on the same day. They might be twins.")
    elif gap_days < thresholds.sibling_close_birth_days:
        result.warn(
            Check.CHRONOLOGY,
            f"Siblings {names} were born less than 9 months apart ({gap_days} days). "
            "They might be twins; please verify dates.",
        )
    elif gap_days / DAYS_PER_YEAR > thresholds.max_sibling_gap_years:
        result.warn(
            Check.CHRONOLOGY,
            f"Siblings {names} have an unusually large age difference "
            f"({round(gap_days / DAYS_PER_YEAR)} years). Please verify relationship.",
        )
    return result


def validate_sibling_group(
    siblings: Iterable[Person],
    thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
) -> ValidationResult:
    """Check a whole sibling set: consecutive birth gaps, then same-day pairs."""
    siblings = list(siblings)
    result = ValidationResult()
    if len(siblings) < 2:
        return result

    dated = sorted((s for s in siblings if s.birth_date), key=lambda s: s.birth_date)
    for older, younger in zip(dated, dated[1:]):
        if older.birth_date != younger.birth_date:
            result.extend(validate_sibling_age_difference(older, younger, thresholds))

    for i, first in enumerate(dated):
        for second in dated[i + 1:]:
            if first.birth_date == second.birth_date:
                result.extend(validate_sibling_age_difference(first, second, thresholds))
    return result


def validate_marriage(
    person1: Person,
    person2: Person,
    relationship: Relationship,
    today: date | None = None,
    thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
) -> ValidationResult:
    """
    Check a spouse relationship's marriage (start) and end dates against both spouses.

    Dates outside either spouse's lifetime and future dates are errors; a
    spouse younger than the minimum marriage age is a warning.
    """
    today = today or date.today()
    result = ValidationResult()
    married, ended = relationship.start_date, relationship.end_date
    spouses = (person1, person2)

    if married:
        if married > today:
            result.error(Check.CHRONOLOGY, "Marriage date cannot be in the future", "start_date")
        for spouse in spouses:
            if spouse.birth_date and married < spouse.birth_date:
                result.error(
                    Check.CHRONOLOGY, f"Marriage date is before {_name(spouse)}'s birth date", "start_date"
                )
            if spouse.death_date and married > spouse.death_date:
                result.error(
                    Check.CHRONOLOGY, f"Marriage date is after {_name(spouse)}'s death date", "start_date"
                )
        for spouse in spouses:
            if spouse.birth_date and married >= spouse.birth_date:
                age = years_between(spouse.birth_date, married)
                if age < thresholds.min_marriage_age_years:
                    result.warn(
                        Check.CHRONOLOGY,
                        f"{_name(spouse)}'s age at marriage ({round(age)} years) is unusually young",
                        "start_date",
                    )

    if ended:
        if ended > today:
            result.error(Check.CHRONOLOGY, "Marriage end date cannot be in the future", "end_date")
        if married and ended < married:
            result.error(Check.DATE_RANGE, "Marriage end date is before marriage date", "end_date")
        for spouse in spouses:
            if spouse.death_date and ended > spouse.death_date:
                result.error(
                    Check.CHRONOLOGY, f"Marriage end date is after {_name(spouse)}'s death date", "end_date"
                )

    return result


def validate_historical_consistency(
    event_date: date | None,
    event_type: EventType | None = None,
    location: str | None = None,
    today: date | None = None,
    thresholds: ChronologyThresholds = DEFAULT_THRESHOLDS,
) -> ValidationResult:
    """
    Compare an event date with historical context.

    Only a future date is an error. Everything else (very old dates, census
    events outside US census years, wars and immigration waves the date falls
    in) is informational.
    """
    today = today or date.today()
    result = ValidationResult()
    if not event_date:
        return result

    if event_date > today:
        result.error(Check.CHRONOLOGY, "Event date cannot be in the future", "event_date")
        return result

    year = event_date.year
    if year < thresholds.earliest_reliable_year:
        result.warn(
            Check.HISTORICAL,
            f"Date ({year}) is before {thresholds.earliest_reliable_year}. "
            "Reliable genealogical records are rare before this period.",
            "event_date",
        )

    is_us = bool(location) and "united states" in location.lower()
    if event_type == EventType.CENSUS and is_us and year not in US_CENSUS_YEARS:
        result.warn(
            Check.HISTORICAL,
            f"{year} is not a US Census year. The US Census was conducted every ten years from 1790.",
            "event_date",
        )

    if event_type == EventType.MILITARY_SERVICE:
        wars = [name for name, start, end in US_WARS if start <= year <= end]
        if wars:
            result.warn(
                Check.HISTORICAL, f"Military service in {year} coincides with: {', '.join(wars)}", "event_date"
            )

    if event_type == EventType.IMMIGRATION and location:
        waves = [
            name for name, start, end in US_IMMIGRATION_WAVES if start <= year <= (end or today.year)
        ]
        if waves:
            result.warn(
                Check.HISTORICAL, f"Immigration in {year} falls within: {', '.join(waves)}", "event_date"
            )

    return result
